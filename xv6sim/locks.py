"""Spin locks with per-CPU interrupt nesting, and sleeping locks."""

from __future__ import annotations

import threading
from dataclasses import dataclass


class LockError(RuntimeError):
    """A lock was used in a way that would panic the kernel."""


@dataclass(eq=False)
class Cpu:
    """Interrupt state of one processor."""

    id: int = 0
    interrupts: bool = True
    ncli: int = 0
    intena: bool = False

    def push_cli(self) -> None:
        """Disable interrupts; matched by pop_cli."""
        enabled = self.interrupts
        self.interrupts = False
        if self.ncli == 0:
            self.intena = enabled
        self.ncli += 1

    def pop_cli(self) -> None:
        """Undo one push_cli; re-enables interrupts at the outermost level."""
        if self.interrupts:
            raise LockError("popcli - interruptible")
        self.ncli -= 1
        if self.ncli < 0:
            self.ncli = 0
            raise LockError("popcli")
        if self.ncli == 0 and self.intena:
            self.interrupts = True


class SpinLock:
    """Mutual exclusion lock held by a CPU with interrupts off."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.cpu: Cpu | None = None
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self, cpu: Cpu) -> None:
        """Take the lock for cpu, waiting while another CPU holds it."""
        cpu.push_cli()
        if self.holding(cpu):
            cpu.pop_cli()
            raise LockError("acquire")
        self._lock.acquire()
        self.cpu = cpu

    def release(self, cpu: Cpu) -> None:
        if not self.holding(cpu):
            raise LockError("release")
        self.cpu = None
        self._lock.release()
        cpu.pop_cli()

    def holding(self, cpu: Cpu) -> bool:
        """Whether cpu holds this lock."""
        cpu.push_cli()
        result = self.locked and self.cpu is cpu
        cpu.pop_cli()
        return result


class SleepLock:
    """Long-term lock; waiters block instead of spinning."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        with self._cond:
            return self.locked and self.pid == pid