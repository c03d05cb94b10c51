"""x86 trap numbers, system call numbers, trap frames and the interrupt table."""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields
from enum import IntEnum

from xv6sim.mmu import DPL_USER, SEG_KCODE, GateDescriptor, make_gate

NIDT = 256


class Trap(IntEnum):
    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class Irq(IntEnum):
    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


class Syscall(IntEnum):
    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SYMLINK = 22
    READLINK = 23


# Field order of the frame in memory; None marks padding.
_LAYOUT = (
    ("edi", "I"), ("esi", "I"), ("ebp", "I"), ("oesp", "I"),
    ("ebx", "I"), ("edx", "I"), ("ecx", "I"), ("eax", "I"),
    ("gs", "H"), (None, "H"), ("fs", "H"), (None, "H"),
    ("es", "H"), (None, "H"), ("ds", "H"), (None, "H"),
    ("trapno", "I"),
    ("err", "I"), ("eip", "I"), ("cs", "H"), (None, "H"), ("eflags", "I"),
    ("esp", "I"), ("ss", "H"), (None, "H"),
)
_FRAME = struct.Struct("<" + "".join(code for _, code in _LAYOUT))


@dataclass
class TrapFrame:
    """Registers saved on the kernel stack when a trap is taken."""

    edi: int = 0
    esi: int = 0
    ebp: int = 0
    oesp: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    gs: int = 0
    fs: int = 0
    es: int = 0
    ds: int = 0
    trapno: int = 0
    err: int = 0
    eip: int = 0
    cs: int = 0
    eflags: int = 0
    esp: int = 0
    ss: int = 0

    SIZE = _FRAME.size

    @property
    def from_user(self) -> bool:
        """True when the trap came from user mode."""
        return (self.cs & 3) == DPL_USER

    def pack(self) -> bytes:
        return _FRAME.pack(*(getattr(self, name) if name else 0 for name, _ in _LAYOUT))


def unpack_trapframe(data: bytes) -> TrapFrame:
    """Decode a trap frame from its bytes on the stack."""
    if len(data) < _FRAME.size:
        raise ValueError("data too short for a trap frame")
    values = _FRAME.unpack_from(data)
    known = {f.name for f in fields(TrapFrame)}
    return TrapFrame(**{
        name: value
        for (name, _), value in zip(_LAYOUT, values)
        if name in known
    })


def build_idt(vectors) -> list[GateDescriptor]:
    """Interrupt gates for all 256 vectors; the system call vector is a user trap gate."""
    vectors = list(vectors)
    if len(vectors) != NIDT:
        raise ValueError(f"expected {NIDT} vectors, got {len(vectors)}")
    sel = SEG_KCODE << 3
    return [
        make_gate(True, sel, off, DPL_USER) if num == Trap.SYSCALL
        else make_gate(False, sel, off, 0)
        for num, off in enumerate(vectors)
    ]


def pseudo_descriptor(base: int, size: int) -> bytes:
    """The 6-byte operand of lgdt/lidt for a table of size bytes at base."""
    base &= 0xFFFFFFFF
    return struct.pack("<HHH", (size - 1) & 0xFFFF, base & 0xFFFF, base >> 16)