import threading

from mpvkit.atomic import AtomicValue


def test_load_store():
    a = AtomicValue(3)
    a.store(9)
    assert a.load() == 9


def test_fetch_add_returns_old():
    a = AtomicValue(10)
    assert a.fetch_add(5) == 10
    assert a.load() == 15


def test_fetch_and_or():
    a = AtomicValue(0b1100)
    assert a.fetch_and(0b1010) == 0b1100
    assert a.load() == 0b1000
    assert a.fetch_or(0b0001) == 0b1000
    assert a.load() == 0b1001


def test_exchange():
    a = AtomicValue("old")
    assert a.exchange("new") == "old"
    assert a.load() == "new"


def test_compare_exchange_success():
    a = AtomicValue(1)
    assert a.compare_exchange(1, 2) == (True, 1)
    assert a.load() == 2


def test_compare_exchange_failure_reports_current():
    a = AtomicValue(7)
    assert a.compare_exchange(1, 2) == (False, 7)
    assert a.load() == 7


def test_float_values():
    a = AtomicValue(1.5)
    a.fetch_add(0.25)
    assert a.load() == 1.75


def test_concurrent_fetch_add():
    a = AtomicValue(0)
    threads = 8
    per_thread = 1000

    def worker():
        for _ in range(per_thread):
            a.fetch_add(1)

    pool = [threading.Thread(target=worker) for _ in range(threads)]
    for t in pool:
        t.start()
    for t in pool:
        t.join()
    assert a.load() == threads * per_thread


def test_concurrent_compare_exchange_increments():
    a = AtomicValue(0)
    threads = 4
    per_thread = 500

    def worker():
        for _ in range(per_thread):
            while True:
                current = a.load()
                ok, _ = a.compare_exchange(current, current + 1)
                if ok:
                    break

    pool = [threading.Thread(target=worker) for _ in range(threads)]
    for t in pool:
        t.start()
    for t in pool:
        t.join()
    assert a.load() == threads * per_thread