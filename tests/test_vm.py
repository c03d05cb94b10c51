import pytest

from xv6sim.mmu import (
    DEVSPACE,
    KERNBASE,
    KERNLINK,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pte_addr,
    v2p,
)
from xv6sim.vm import PageDirectory, PhysicalMemory, setup_kvm

START = 0x100000


def _phys(pages=32):
    return PhysicalMemory(START, START + pages * PGSIZE)


def _user_read(pgdir, phys, va, n):
    ka = pgdir.uva2ka(va - va % PGSIZE)
    return phys.read(v2p(ka) + va % PGSIZE, n)


def test_kalloc_pages_are_aligned_and_in_range():
    phys = _phys(4)
    pages = {phys.kalloc() for _ in range(4)}
    assert len(pages) == 4
    assert all(p % PGSIZE == 0 and START <= p < START + 4 * PGSIZE for p in pages)
    assert phys.free_count() == 0
    with pytest.raises(MemoryError):
        phys.kalloc()


def test_kfree_errors():
    phys = _phys(4)
    pa = phys.kalloc()
    with pytest.raises(ValueError):
        phys.kfree(pa + 1)
    phys.kfree(pa)
    with pytest.raises(ValueError):
        phys.kfree(pa)
    with pytest.raises(ValueError):
        phys.kfree(START + 100 * PGSIZE)


def test_bad_physical_range():
    with pytest.raises(ValueError):
        PhysicalMemory(0, PGSIZE)
    with pytest.raises(ValueError):
        PhysicalMemory(PGSIZE + 1, 4 * PGSIZE)


def test_read_write_across_pages():
    phys = _phys(4)
    pages = sorted(phys.kalloc() for _ in range(4))
    assert pages[1] == pages[0] + PGSIZE
    data = bytes(range(256)) * 3
    phys.write(pages[1] - 100, data)
    assert phys.read(pages[1] - 100, len(data)) == data


def test_fresh_pages_are_zero():
    phys = _phys(2)
    pa = phys.kalloc()
    assert phys.read(pa, PGSIZE) == bytes(PGSIZE)


def test_alloc_user_maps_user_pages():
    phys = _phys()
    pgdir = PageDirectory(phys)
    assert pgdir.alloc_user(0, 2 * PGSIZE + 1) == 2 * PGSIZE + 1
    for va in (0, PGSIZE, 2 * PGSIZE):
        entry = pgdir.entry(va)
        assert entry & (PTE_P | PTE_W | PTE_U) == PTE_P | PTE_W | PTE_U
    assert pgdir.uva2ka(3 * PGSIZE) is None


def test_alloc_user_shrink_request_returns_old_size():
    pgdir = PageDirectory(_phys())
    assert pgdir.alloc_user(PGSIZE, 10) == PGSIZE


def test_alloc_user_kernel_space_rejected():
    pgdir = PageDirectory(_phys())
    with pytest.raises(ValueError):
        pgdir.alloc_user(0, KERNBASE)


def test_copyout_round_trip_across_pages():
    phys = _phys()
    pgdir = PageDirectory(phys)
    pgdir.alloc_user(0, 2 * PGSIZE)
    data = b"hello world" * 50
    pgdir.copyout(PGSIZE - 20, data)
    assert _user_read(pgdir, phys, PGSIZE - 20, 20) == data[:20]
    assert _user_read(pgdir, phys, PGSIZE, len(data) - 20) == data[20:]


def test_copyout_to_unmapped_raises():
    pgdir = PageDirectory(_phys())
    pgdir.alloc_user(0, PGSIZE)
    with pytest.raises(ValueError):
        pgdir.copyout(PGSIZE - 2, b"abcd")


def test_dealloc_and_free_return_all_pages():
    phys = _phys()
    before = phys.free_count()
    pgdir = PageDirectory(phys)
    pgdir.alloc_user(0, 5 * PGSIZE)
    assert pgdir.dealloc_user(5 * PGSIZE, 2 * PGSIZE) == 2 * PGSIZE
    assert pgdir.uva2ka(2 * PGSIZE) is None
    assert pgdir.uva2ka(PGSIZE) is not None and pgdir.entry(PGSIZE) & PTE_P
    assert pgdir.dealloc_user(PGSIZE, 2 * PGSIZE) == PGSIZE
    pgdir.free()
    assert phys.free_count() == before


def test_alloc_user_out_of_memory_cleans_up():
    phys = _phys(4)
    pgdir = PageDirectory(phys)
    with pytest.raises(MemoryError):
        pgdir.alloc_user(0, 10 * PGSIZE)
    assert pgdir.uva2ka(0) is None
    pgdir.free()
    assert phys.free_count() == 4


def test_clear_user_hides_page():
    phys = _phys()
    pgdir = PageDirectory(phys)
    pgdir.alloc_user(0, 2 * PGSIZE)
    pgdir.clear_user(0)
    assert pgdir.uva2ka(0) is None
    assert pgdir.entry(0) & PTE_P
    with pytest.raises(ValueError):
        pgdir.copyout(0, b"x")
    with pytest.raises(RuntimeError):
        pgdir.clear_user(KERNBASE - PGSIZE)


def test_init_user():
    phys = _phys()
    pgdir = PageDirectory(phys)
    pgdir.init_user(b"\x90\x90init")
    assert _user_read(pgdir, phys, 0, 6) == b"\x90\x90init"
    with pytest.raises(ValueError):
        PageDirectory(phys).init_user(bytes(PGSIZE))


def test_load_user():
    phys = _phys()
    pgdir = PageDirectory(phys)
    pgdir.alloc_user(0, 2 * PGSIZE)
    data = bytes(range(256)) * 20
    pgdir.load_user(0, data, 10, PGSIZE + 50)
    assert _user_read(pgdir, phys, 0, 100) == data[10:110]
    assert _user_read(pgdir, phys, PGSIZE, 50) == data[10 + PGSIZE:60 + PGSIZE]
    with pytest.raises(ValueError):
        pgdir.load_user(1, data, 0, 10)
    with pytest.raises(ValueError):
        pgdir.load_user(0, data, len(data) - 5, 10)
    with pytest.raises(RuntimeError):
        pgdir.load_user(0x400000, data, 0, 10)


def test_map_pages_remap_and_empty():
    pgdir = PageDirectory(_phys())
    pgdir.map_pages(0, PGSIZE, START, PTE_W)
    with pytest.raises(RuntimeError):
        pgdir.map_pages(0, 1, START, PTE_W)
    with pytest.raises(ValueError):
        pgdir.map_pages(PGSIZE, 0, START, PTE_W)


def test_copy_is_independent():
    phys = _phys()
    parent = PageDirectory(phys)
    parent.alloc_user(0, 2 * PGSIZE)
    parent.copyout(5, b"parent data")
    child = parent.copy(2 * PGSIZE)
    assert _user_read(child, phys, 5, 11) == b"parent data"
    child.copyout(5, b"child")
    assert _user_read(parent, phys, 5, 6) == b"parent"
    assert child.uva2ka(0) != parent.uva2ka(0)


def test_copy_missing_page_raises():
    parent = PageDirectory(_phys())
    parent.alloc_user(0, PGSIZE)
    with pytest.raises(RuntimeError):
        parent.copy(2 * PGSIZE)


def _entry_of(pgdir, va):
    return pgdir.entry(va)


def test_setup_kvm_out_of_memory_frees_everything():
    phys = _phys(10)
    with pytest.raises(MemoryError):
        setup_kvm(phys, KERNLINK + PGSIZE)
    assert phys.free_count() == 10


def test_setup_kvm_bad_data_address():
    with pytest.raises(ValueError):
        setup_kvm(_phys(), KERNLINK)
    with pytest.raises(ValueError):
        setup_kvm(_phys(), KERNLINK + PGSIZE + 1)