"""x86 memory-management definitions: paging, segments, gates and memory layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass

UINT_MASK = 0xFFFFFFFF

# Kernel parameters.
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1 << 15

# Memory layout.
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Eflags and control registers.
FL_IF = 0x00000200
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors.
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits.
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits.
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

SEG_NULL = bytes(8)


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & UINT_MASK) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & UINT_MASK) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & UINT_MASK


def pg_round_up(sz: int) -> int:
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & UINT_MASK


def pg_round_down(a: int) -> int:
    return a & ~(PGSIZE - 1) & UINT_MASK


def pte_addr(pte: int) -> int:
    """Physical address held in a page table or directory entry."""
    return pte & ~0xFFF & UINT_MASK


def pte_flags(pte: int) -> int:
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & UINT_MASK


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & UINT_MASK


@dataclass
class SegmentDescriptor:
    """A GDT segment descriptor."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    def pack(self) -> bytes:
        """Encode the descriptor as its 8 bytes in memory."""
        low = (self.lim_15_0 & 0xFFFF) | (self.base_15_0 & 0xFFFF) << 16
        high = (
            (self.base_23_16 & 0xFF)
            | (self.type & 0xF) << 8
            | (self.s & 0x1) << 12
            | (self.dpl & 0x3) << 13
            | (self.p & 0x1) << 15
            | (self.lim_19_16 & 0xF) << 16
            | (self.avl & 0x1) << 20
            | (self.rsv1 & 0x1) << 21
            | (self.db & 0x1) << 22
            | (self.g & 0x1) << 23
            | (self.base_31_24 & 0xFF) << 24
        )
        return struct.pack("<II", low, high)


@dataclass
class GateDescriptor:
    """An IDT interrupt or trap gate."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    @property
    def offset(self) -> int:
        return (self.off_31_16 << 16) | self.off_15_0

    def pack(self) -> bytes:
        """Encode the gate as its 8 bytes in memory."""
        low = (self.off_15_0 & 0xFFFF) | (self.cs & 0xFFFF) << 16
        high = (
            (self.args & 0x1F)
            | (self.rsv1 & 0x7) << 5
            | (self.type & 0xF) << 8
            | (self.s & 0x1) << 12
            | (self.dpl & 0x3) << 13
            | (self.p & 0x1) << 15
            | (self.off_31_16 & 0xFFFF) << 16
        )
        return struct.pack("<II", low, high)


def seg(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """Normal 32-bit segment with a limit in 4 KiB units."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return SegmentDescriptor(
        lim_15_0=(limit >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_ & 0xF,
        s=1,
        dpl=dpl & 0x3,
        p=1,
        lim_19_16=(limit >> 28) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=base >> 24,
    )


def seg16(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """Segment with a byte-granular limit."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return SegmentDescriptor(
        lim_15_0=limit & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_ & 0xF,
        s=1,
        dpl=dpl & 0x3,
        p=1,
        lim_19_16=(limit >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=base >> 24,
    )


def seg_asm(type_: int, base: int, limit: int) -> bytes:
    """Bytes of a boot-time segment descriptor as the assembler lays it out."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return struct.pack(
        "<HHBBBB",
        (limit >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        (0x90 | type_) & 0xFF,
        0xC0 | ((limit >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


def make_gate(istrap: bool, sel: int, off: int, dpl: int) -> GateDescriptor:
    """Interrupt gate (clears IF) or trap gate (leaves IF alone)."""
    off &= UINT_MASK
    return GateDescriptor(
        off_15_0=off & 0xFFFF,
        cs=sel & 0xFFFF,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl & 0x3,
        p=1,
        off_31_16=off >> 16,
    )