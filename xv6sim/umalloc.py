"""A first-fit free-list memory allocator over a simulated, sbrk-grown heap."""

from __future__ import annotations

from dataclasses import dataclass

HEADER_SIZE = 8
MIN_UNITS = 4096


@dataclass
class _Header:
    ptr: int
    size: int  # in units of HEADER_SIZE, header included


class Allocator:
    """Heap allocator whose addresses are byte offsets into a growable heap.

    The heap starts at address 0 and may grow up to ``limit`` bytes.
    Free blocks are kept on a circular list sorted by address and are
    coalesced with their neighbours when released.
    """

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError("heap limit must not be negative")
        self.limit = limit
        self._brk = 0
        # The list anchor lives below the heap, like a static variable.
        self._base = -HEADER_SIZE
        self._headers: dict[int, _Header] = {self._base: _Header(self._base, 0)}
        self._freep: int | None = None
        self._allocated: set[int] = set()

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the old break."""
        old = self._brk
        new = old + n
        if new < 0 or new > self.limit:
            raise MemoryError(f"cannot move break to {new}")
        self._brk = new
        return old

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the usable block."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        headers = self._headers
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            headers[self._base].ptr = self._base
            headers[self._base].size = 0
            self._freep = self._base
        prevp = self._freep
        p = headers[prevp].ptr
        while True:
            block = headers[p]
            if block.size >= nunits:
                if block.size == nunits:
                    headers[prevp].ptr = block.ptr
                else:
                    block.size -= nunits
                    p += block.size * HEADER_SIZE
                    headers[p] = _Header(0, nunits)
                self._allocated.add(p)
                self._freep = prevp
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, headers[p].ptr

    def _morecore(self, nu: int) -> int:
        nu = max(nu, MIN_UNITS)
        addr = self.sbrk(nu * HEADER_SIZE)
        self._headers[addr] = _Header(0, nu)
        self._allocated.add(addr)
        self.free(addr + HEADER_SIZE)
        return self._freep

    def free(self, ap: int) -> None:
        """Return the block at ap to the free list."""
        bp = ap - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"address {ap} was not allocated")
        self._allocated.remove(bp)
        headers = self._headers
        p = self._freep
        while not (p < bp < headers[p].ptr):
            nxt = headers[p].ptr
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        block = headers[bp]
        cur = headers[p]
        if bp + block.size * HEADER_SIZE == cur.ptr:
            upper = headers.pop(cur.ptr)
            block.size += upper.size
            block.ptr = upper.ptr
        else:
            block.ptr = cur.ptr
        if p + cur.size * HEADER_SIZE == bp:
            cur.size += block.size
            cur.ptr = block.ptr
            del headers[bp]
        else:
            cur.ptr = bp
        self._freep = p

    def free_blocks(self) -> list[tuple[int, int]]:
        """Free blocks in address order as (header address, size in bytes)."""
        if self._freep is None:
            return []
        headers = self._headers
        blocks = []
        p = headers[self._base].ptr
        while p != self._base:
            blocks.append((p, headers[p].size * HEADER_SIZE))
            p = headers[p].ptr
        return blocks