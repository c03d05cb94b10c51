"""System call argument fetching from user memory and dispatch by number."""

from __future__ import annotations

import struct
import sys
from typing import Callable, TextIO

from xv6sim.mmu import UINT_MASK

_INT = struct.Struct("<i")


class SyscallError(Exception):
    """A system call argument is invalid or the call failed."""


class UserMemory:
    """A process's address space [0, sz) for argument checking."""

    def __init__(self, data, sz: int) -> None:
        if sz < 0 or sz > len(data):
            raise ValueError("process size must lie within the data")
        self.data = data
        self.sz = sz

    def fetch_int(self, addr: int) -> int:
        """The signed 32-bit integer at addr."""
        addr &= UINT_MASK
        if addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"bad address {addr:#x}")
        return _INT.unpack_from(self.data, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its NUL."""
        addr &= UINT_MASK
        if addr >= self.sz:
            raise SyscallError(f"bad address {addr:#x}")
        region = bytes(self.data[addr:self.sz])
        end = region.find(0)
        if end < 0:
            raise SyscallError(f"unterminated string at {addr:#x}")
        return region[:end]


class SyscallArgs:
    """Arguments on the user stack: esp points at the return address, then the arguments."""

    def __init__(self, memory: UserMemory, esp: int) -> None:
        self.memory = memory
        self.esp = esp

    def arg_int(self, n: int) -> int:
        return self.memory.fetch_int(self.esp + 4 + 4 * n)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of size bytes inside the process."""
        addr = self.arg_int(n) & UINT_MASK
        sz = self.memory.sz
        if size < 0 or addr >= sz or addr + size > sz:
            raise SyscallError(f"bad pointer {addr:#x} for {size} bytes")
        return addr

    def arg_str(self, n: int) -> bytes:
        return self.memory.fetch_str(self.arg_int(n))


class SyscallTable:
    """Handlers by system call number.

    dispatch returns the value left in %eax: the handler's result, or -1
    for an unknown call or a handler that raised SyscallError.
    """

    def __init__(self, console: TextIO | None = None) -> None:
        self._handlers: dict[int, Callable[[], int]] = {}
        self.console = console

    def register(self, num: int, handler: Callable[[], int]) -> None:
        if num <= 0:
            raise ValueError("system call numbers start at 1")
        self._handlers[int(num)] = handler

    def dispatch(self, num: int, pid: int, name: str) -> int:
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            out = self.console if self.console is not None else sys.stderr
            out.write(f"{pid} {name}: unknown sys call {num}\n")
            return -1
        try:
            return handler()
        except SyscallError:
            return -1