"""Monotonic microsecond clock, sleeping, and timeout arithmetic."""

from __future__ import annotations

import random
import threading
import time
from typing import NamedTuple

MP_START_TIME = 10_000_000
MP_SECOND_US = 1000 * 1000

INT64_MAX = 2**63 - 1
_TWO_POW_63 = float(2**63)
_NSEC_PER_SEC = 1_000_000_000
_MAX_TIMESPEC_DIFF_SECS = 10_000_000

_init_lock = threading.Lock()
_initialized = False
_raw_time_offset = 0
_rng = random.Random()


class Timespec(NamedTuple):
    """An absolute wall-clock time split into seconds and nanoseconds."""

    sec: int
    nsec: int


def raw_time_us() -> int:
    """Return the raw monotonic clock in microseconds."""
    return time.monotonic_ns() // 1000


def time_init() -> None:
    """Initialise the clock once; later calls do nothing."""
    global _initialized, _raw_time_offset
    with _init_lock:
        if _initialized:
            return
        _rng.seed(raw_time_us())
        # The offset makes the clock start at MP_START_TIME, so it is never 0.
        _raw_time_offset = raw_time_us() - MP_START_TIME
        _initialized = True


def _current_us() -> int:
    if not _initialized:
        time_init()
    return max(raw_time_us() - _raw_time_offset, MP_START_TIME)


def time_us() -> int:
    """Return time in microseconds; never wraps, never below MP_START_TIME."""
    return _current_us()


def time_sec() -> float:
    """Return time in seconds."""
    return _current_us() / MP_SECOND_US


def sleep_us(us: int) -> None:
    """Sleep for us microseconds; negative values return at once."""
    if us < 0:
        return
    time.sleep(us / MP_SECOND_US)


def add_timeout(time_us: int, timeout_sec: float) -> int:
    """Add timeout_sec seconds to time_us, saturating; the result is always >= 1."""
    if time_us <= 0:
        raise ValueError(f"time must be strictly positive: {time_us}")
    t = timeout_sec * MP_SECOND_US
    if t != t:
        raise ValueError("timeout is not a number")
    t = min(max(t, -_TWO_POW_63), _TWO_POW_63)
    ti = INT64_MAX if t == _TWO_POW_63 else int(t)
    if ti > INT64_MAX - time_us:
        return INT64_MAX
    if ti <= -time_us:
        return 1
    return time_us + ti


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def time_us_to_timespec(time_us: int) -> Timespec:
    """Map a clock time in microseconds to an absolute wall-clock Timespec."""
    now_ns = time.time_ns()
    ts_sec, ts_nsec = divmod(now_ns, _NSEC_PER_SEC)
    unow = _current_us()
    diff_us = time_us - unow
    diff_secs = _trunc_div(diff_us, MP_SECOND_US)
    diff_nsecs = (diff_us - diff_secs * MP_SECOND_US) * 1000
    if diff_nsecs < 0:
        diff_secs -= 1
        diff_nsecs += _NSEC_PER_SEC
    if diff_nsecs + ts_nsec >= _NSEC_PER_SEC:
        diff_secs += 1
        diff_nsecs -= _NSEC_PER_SEC
    diff_secs = min(diff_secs, _MAX_TIMESPEC_DIFF_SECS)
    return Timespec(ts_sec + diff_secs, ts_nsec + diff_nsecs)


def rel_time_to_timespec(timeout_sec: float) -> Timespec:
    """Convert a relative timeout in seconds to an absolute wall-clock Timespec."""
    return time_us_to_timespec(add_timeout(_current_us(), timeout_sec))