"""Deadline-based waits, a counting semaphore and a joinable thread registry."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from mpvkit.timer import Timespec

SEM_VALUE_MAX = 100

_INT_MAX = 2**31 - 1
_INT64_MAX = 2**63 - 1

Deadline = Union[float, Timespec]


def timeout_ms_until(deadline_sec: float, now_sec: float) -> Optional[int]:
    """Return the milliseconds from now_sec to the wall-clock deadline_sec.

    None means wait forever (the deadline is too far away); a deadline in the
    past gives 0.
    """
    if math.isnan(deadline_sec) or not math.isfinite(now_sec):
        raise ValueError("deadline and current time must be real numbers")
    if deadline_sec >= _INT64_MAX // 10000:
        return None
    d_sec = math.floor(deadline_sec)
    n_sec = math.floor(now_sec)
    if d_sec < n_sec:
        return 0
    msec = (
        (d_sec - n_sec) * 1000
        + int((deadline_sec - d_sec) * 1000)
        - int((now_sec - n_sec) * 1000)
    )
    if msec > _INT_MAX:
        return None
    return max(msec, 0)


def _as_seconds(deadline: Deadline) -> float:
    if isinstance(deadline, Timespec):
        return deadline.sec + deadline.nsec / 1e9
    return float(deadline)


class Semaphore:
    """A counting semaphore with deadline-based waiting."""

    def __init__(self, value: int = 0, shared: bool = False) -> None:
        if shared:
            raise ValueError("process-shared semaphores are not supported")
        if value < 0:
            raise ValueError(f"negative semaphore value: {value}")
        self._value = value
        self._cond = threading.Condition(threading.Lock())

    @property
    def value(self) -> int:
        with self._cond:
            return self._value

    def wait(self) -> None:
        """Block until the count is positive, then decrement it."""
        with self._cond:
            while not self._value:
                self._cond.wait()
            self._value -= 1

    def try_wait(self) -> bool:
        """Decrement the count if it is positive; return whether it was."""
        with self._cond:
            if self._value > 0:
                self._value -= 1
                return True
            return False

    def timed_wait(self, deadline: Deadline) -> bool:
        """Wait until the absolute wall-clock deadline; False if it passed first."""
        deadline_sec = _as_seconds(deadline)
        with self._cond:
            while not self._value:
                ms = timeout_ms_until(deadline_sec, time.time())
                if not self._cond.wait(None if ms is None else ms / 1000):
                    return False
            self._value -= 1
            return True

    def post(self) -> None:
        """Increment the count and wake the waiters."""
        with self._cond:
            self._value += 1
            self._cond.notify_all()


class ThreadExit(Exception):
    """Raised inside a registered thread to end it with a result."""

    def __init__(self, value: Any = None) -> None:
        super().__init__(value)
        self.value = value


@dataclass
class _ThreadInfo:
    thread: threading.Thread
    joinable: bool = True
    result: Any = None
    error: Optional[BaseException] = None


class ThreadRegistry:
    """Starts threads that can later be joined for their result, or detached."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._table: dict[int, _ThreadInfo] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)

    def __contains__(self, ident: object) -> bool:
        with self._lock:
            return ident in self._table

    def create(self, fn: Callable[[Any], Any], arg: Any) -> int:
        """Start fn(arg) in a new thread and return the thread's identifier."""
        with self._lock:
            thread = threading.Thread(target=self._run, args=(fn, arg), daemon=True)
            thread.start()
            ident = thread.ident
            assert ident is not None
            self._table[ident] = _ThreadInfo(thread)
            return ident

    def exit(self, retval: Any = None) -> None:
        """End the calling registered thread with retval as its result."""
        raise ThreadExit(retval)

    def _run(self, fn: Callable[[Any], Any], arg: Any) -> None:
        ident = threading.get_ident()
        with self._lock:
            # Waits for create() to register this thread.
            if ident not in self._table:
                raise RuntimeError("thread was not started by this registry")
        result: Any = None
        error: Optional[BaseException] = None
        try:
            result = fn(arg)
        except ThreadExit as exc:
            result = exc.value
        except BaseException as exc:  # handed to the joiner
            error = exc
        with self._lock:
            info = self._table[ident]
            info.result = result
            info.error = error
            if not info.joinable:
                del self._table[ident]

    def join(self, ident: int) -> Any:
        """Wait for the thread to end and return its result.

        An exception raised by the thread is raised again here.
        """
        with self._lock:
            info = self._table.get(ident)
            if info is None:
                raise KeyError(f"no joinable thread {ident}")
            if not info.joinable:
                raise RuntimeError(f"thread {ident} is detached")
            thread = info.thread
        thread.join()
        with self._lock:
            info = self._table.pop(ident)
        if info.error is not None:
            raise info.error
        return info.result

    def detach(self, ident: int) -> None:
        """Detach the calling thread; its entry is dropped when it ends."""
        if ident != threading.get_ident():
            raise RuntimeError("only the calling thread can be detached")
        with self._lock:
            info = self._table.get(ident)
            if info is None:
                raise KeyError(f"no registered thread {ident}")
            if not info.joinable:
                raise RuntimeError(f"thread {ident} is already detached")
            info.joinable = False