import threading

import pytest

from xv6sim.locks import Cpu, LockError, SleepLock, SpinLock


def test_acquire_release_tracks_interrupts():
    cpu = Cpu()
    lock = SpinLock("test")
    lock.acquire(cpu)
    assert lock.holding(cpu)
    assert lock.locked
    assert cpu.ncli == 1
    assert cpu.interrupts is False
    lock.release(cpu)
    assert not lock.holding(cpu)
    assert cpu.ncli == 0
    assert cpu.interrupts is True


def test_nested_locks_keep_interrupts_off():
    cpu = Cpu()
    a, b = SpinLock("a"), SpinLock("b")
    a.acquire(cpu)
    b.acquire(cpu)
    a.release(cpu)
    assert cpu.interrupts is False
    b.release(cpu)
    assert cpu.interrupts is True


def test_interrupts_stay_off_if_they_were_off():
    cpu = Cpu(interrupts=False)
    lock = SpinLock("x")
    lock.acquire(cpu)
    lock.release(cpu)
    assert cpu.interrupts is False


def test_double_acquire_panics():
    cpu = Cpu()
    lock = SpinLock("x")
    lock.acquire(cpu)
    with pytest.raises(LockError, match="acquire"):
        lock.acquire(cpu)
    assert cpu.ncli == 1


def test_release_unheld_panics():
    with pytest.raises(LockError, match="release"):
        SpinLock("x").release(Cpu())


def test_release_by_other_cpu_panics():
    lock = SpinLock("x")
    owner = Cpu(id=0)
    lock.acquire(owner)
    other = Cpu(id=1)
    assert not lock.holding(other)
    with pytest.raises(LockError, match="release"):
        lock.release(other)


def test_pop_cli_interruptible():
    with pytest.raises(LockError, match="interruptible"):
        Cpu().pop_cli()


def test_pop_cli_underflow():
    with pytest.raises(LockError, match="popcli"):
        Cpu(interrupts=False).pop_cli()


def test_spinlock_mutual_exclusion_across_threads():
    iterations, workers = 1000, 4
    lock = SpinLock("counter")
    total = [0]
    cpus = [Cpu(id=i) for i in range(workers)]
    held_inside = []

    def worker(cpu):
        for _ in range(iterations):
            lock.acquire(cpu)
            if not lock.holding(cpu):
                held_inside.append(cpu.id)
            value = total[0]
            total[0] = value + 1
            lock.release(cpu)

    threads = [threading.Thread(target=worker, args=(cpu,)) for cpu in cpus]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert total[0] == iterations * workers
    assert held_inside == []
    assert not lock.locked
    assert [cpu.ncli for cpu in cpus] == [0] * workers
    assert all(cpu.interrupts is True for cpu in cpus)
    assert not any(lock.holding(cpu) for cpu in cpus)


def test_sleeplock_holding():
    lk = SleepLock("s")
    lk.acquire(3)
    assert lk.holding(3)
    assert not lk.holding(4)
    lk.release()
    assert not lk.holding(3)
    assert lk.pid == 0


def test_sleeplock_blocks_until_release():
    lk = SleepLock("s")
    lk.acquire(1)
    got = threading.Event()

    def waiter():
        lk.acquire(2)
        got.set()

    t = threading.Thread(target=waiter)
    t.start()
    assert not got.wait(0.1)
    lk.release()
    t.join(5)
    assert got.is_set()
    assert lk.holding(2)