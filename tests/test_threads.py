import errno
import threading

import pytest

from mpvkit.threads import (
    ThreadResultError,
    check_result,
    recursive_lock,
    set_thread_name,
    thread_name,
)


def test_thread_name_prefix():
    assert thread_name("terminal") == "mpv/terminal"


def test_thread_name_limited_to_buffer():
    name = thread_name("x" * 200)
    assert len(name) == 79
    assert name.startswith("mpv/")


def test_set_thread_name_in_thread():
    seen = []

    def worker():
        set_thread_name("demux")
        seen.append(threading.current_thread().name)

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert seen == [thread_name("demux")]


def test_check_result_success():
    assert check_result("file.c", 12, 0) == 0


def test_check_result_timeout_passes():
    assert check_result("file.c", 12, errno.ETIMEDOUT) == errno.ETIMEDOUT


def test_check_result_error_raises():
    with pytest.raises(ThreadResultError) as info:
        check_result("file.c", 12, errno.EINVAL)
    assert "file.c:12" in str(info.value)
    assert info.value.res == errno.EINVAL


def test_recursive_lock_reentrant():
    lock = recursive_lock()
    assert lock.acquire(timeout=1)
    assert lock.acquire(timeout=1)
    lock.release()
    lock.release()


def test_recursive_lock_excludes_other_threads():
    lock = recursive_lock()
    results = []
    with lock:
        t = threading.Thread(target=lambda: results.append(lock.acquire(timeout=0.05)))
        t.start()
        t.join()
        assert lock.acquire(timeout=1) is True
        lock.release()
    assert results == [False]