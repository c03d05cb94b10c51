"""Two-level x86 page tables kept in simulated physical memory."""

from __future__ import annotations

import struct

from xv6sim.mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    UINT_MASK,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_ENTRY = struct.Struct("<I")


class PhysicalMemory:
    """A pool of physical pages in [start, stop) handed out one page at a time."""

    def __init__(self, start: int, stop: int) -> None:
        if start % PGSIZE or stop % PGSIZE or not 0 < start < stop:
            raise ValueError("physical range must be page aligned, non-empty and above 0")
        self.start = start
        self.stop = stop
        self._free = list(range(start, stop, PGSIZE))
        self._pages: dict[int, bytearray] = {}

    def kalloc(self) -> int:
        """Allocate one zeroed page and return its physical address."""
        if not self._free:
            raise MemoryError("out of physical memory")
        pa = self._free.pop()
        self._pages[pa] = bytearray(PGSIZE)
        return pa

    def kfree(self, pa: int) -> None:
        """Return the page at pa to the pool."""
        if pa % PGSIZE or not self.start <= pa < self.stop:
            raise ValueError(f"kfree: bad page address {pa:#x}")
        if pa not in self._pages:
            raise ValueError(f"kfree: page {pa:#x} is not allocated")
        del self._pages[pa]
        self._free.append(pa)

    def free_count(self) -> int:
        return len(self._free)

    def _locate(self, pa: int) -> tuple[bytearray, int]:
        base = pa - pa % PGSIZE
        page = self._pages.get(base)
        if page is None:
            raise ValueError(f"physical address {pa:#x} is not in an allocated page")
        return page, pa - base

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at pa; may span pages."""
        out = bytearray()
        while n > 0:
            page, off = self._locate(pa)
            chunk = min(n, PGSIZE - off)
            out += page[off:off + chunk]
            pa += chunk
            n -= chunk
        return bytes(out)

    def write(self, pa: int, data) -> None:
        """Write data starting at pa; may span pages."""
        view = memoryview(bytes(data))
        while view:
            page, off = self._locate(pa)
            chunk = min(len(view), PGSIZE - off)
            page[off:off + chunk] = view[:chunk]
            pa += chunk
            view = view[chunk:]

    def _load(self, pa: int) -> int:
        page, off = self._locate(pa)
        return _ENTRY.unpack_from(page, off)[0]

    def _store(self, pa: int, value: int) -> None:
        page, off = self._locate(pa)
        _ENTRY.pack_into(page, off, value & UINT_MASK)


class PageDirectory:
    """A page directory and its page tables, all held in physical pages."""

    def __init__(self, phys: PhysicalMemory) -> None:
        self._phys = phys
        self.address = phys.kalloc()
        self._data_addr: int | None = None

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the PTE for va, creating its page table if alloc."""
        phys = self._phys
        pde_at = self.address + 4 * pdx(va)
        pde = phys._load(pde_at)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            table = phys.kalloc()
            phys._store(pde_at, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def entry(self, va: int) -> int | None:
        """The PTE value for va, or None if it has no page table."""
        pte = self.walk(va)
        return None if pte is None else self._phys._load(pte)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) to physical pages from pa."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        phys = self._phys
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            pte = self.walk(a, True)
            if phys._load(pte) & PTE_P:
                raise RuntimeError("remap")
            phys._store(pte, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_user(self, init) -> None:
        """Load init (less than a page) at user address 0."""
        init = bytes(init)
        if len(init) >= PGSIZE:
            raise ValueError("inituvm: more than a page")
        mem = self._phys.kalloc()
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self._phys.write(mem, init)

    def load_user(self, addr: int, data, offset: int, size: int) -> None:
        """Copy size bytes of data from offset into already-mapped pages at addr."""
        if addr % PGSIZE:
            raise ValueError("loaduvm: addr must be page aligned")
        for i in range(0, size, PGSIZE):
            pte = self.walk(addr + i)
            if pte is None:
                raise RuntimeError("loaduvm: address should exist")
            pa = pte_addr(self._phys._load(pte))
            n = min(PGSIZE, size - i)
            chunk = bytes(data[offset + i:offset + i + n])
            if len(chunk) != n:
                raise ValueError("loaduvm: short read")
            self._phys.write(pa, chunk)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz; returns the new size."""
        if newsz >= KERNBASE:
            raise ValueError("user size reaches kernel space")
        if newsz < oldsz:
            return oldsz
        phys = self._phys
        for a in range(pg_round_up(oldsz), newsz, PGSIZE):
            try:
                mem = phys.kalloc()
            except MemoryError:
                self.dealloc_user(newsz, oldsz)
                raise
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except MemoryError:
                self.dealloc_user(newsz, oldsz)
                phys.kfree(mem)
                raise
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Shrink user memory from oldsz to newsz; returns the new size."""
        if newsz >= oldsz:
            return oldsz
        phys = self._phys
        a = pg_round_up(newsz)
        while a < oldsz:
            pte = self.walk(a)
            if pte is None:
                a = ((pdx(a) + 1) << PDXSHIFT) - PGSIZE
            else:
                entry = phys._load(pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise RuntimeError("kfree")
                    phys.kfree(pa)
                    phys._store(pte, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Free all user pages, every page table and the directory itself."""
        phys = self._phys
        self.dealloc_user(KERNBASE, 0)
        for i in range(NPDENTRIES):
            entry = phys._load(self.address + 4 * i)
            if entry & PTE_P:
                phys.kfree(pte_addr(entry))
        phys.kfree(self.address)

    def clear_user(self, uva: int) -> None:
        """Make the page at uva inaccessible to user code."""
        pte = self.walk(uva)
        if pte is None:
            raise RuntimeError("clearpteu")
        self._phys._store(pte, self._phys._load(pte) & ~PTE_U)

    def copy(self, sz: int) -> PageDirectory:
        """A new directory with private copies of the first sz bytes of user memory."""
        phys = self._phys
        if self._data_addr is not None:
            child = setup_kvm(phys, self._data_addr)
        else:
            child = PageDirectory(phys)
        try:
            for i in range(0, sz, PGSIZE):
                pte = self.walk(i)
                if pte is None:
                    raise RuntimeError("copyuvm: pte should exist")
                entry = phys._load(pte)
                if not entry & PTE_P:
                    raise RuntimeError("copyuvm: page not present")
                mem = phys.kalloc()
                phys.write(mem, phys.read(pte_addr(entry), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, mem, pte_flags(entry))
                except MemoryError:
                    phys.kfree(mem)
                    raise
        except MemoryError:
            child.free()
            raise
        return child

    def uva2ka(self, uva: int) -> int | None:
        """Kernel address of the user page at uva, or None if not user-accessible."""
        entry = self.entry(uva)
        if entry is None or not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copyout(self, va: int, data) -> None:
        """Copy data to user address va, page by page."""
        view = memoryview(bytes(data))
        while view:
            va0 = pg_round_down(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise ValueError(f"bad user address {va:#x}")
            n = min(PGSIZE - (va - va0), len(view))
            self._phys.write(v2p(ka) + (va - va0), view[:n])
            view = view[n:]
            va = va0 + PGSIZE


def setup_kvm(phys: PhysicalMemory, data_addr: int) -> PageDirectory:
    """A directory holding the kernel mappings; data_addr is where kernel data starts."""
    if data_addr % PGSIZE or not KERNLINK < data_addr < p2v(PHYSTOP):
        raise ValueError("kernel data address must be page aligned inside the kernel")
    if p2v(PHYSTOP) > DEVSPACE:
        raise RuntimeError("PHYSTOP too high")
    kmap = (
        (KERNBASE, 0, EXTMEM, PTE_W),
        (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
        (data_addr, v2p(data_addr), PHYSTOP, PTE_W),
        (DEVSPACE, DEVSPACE, 0, PTE_W),
    )
    pgdir = PageDirectory(phys)
    pgdir._data_addr = data_addr
    try:
        for virt, start, end, perm in kmap:
            pgdir.map_pages(virt, (end - start) & UINT_MASK, start, perm)
    except MemoryError:
        pgdir.free()
        raise
    return pgdir