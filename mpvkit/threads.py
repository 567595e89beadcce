"""Thread naming, lock helpers and thread-result checking."""

from __future__ import annotations

import errno
import os
import threading

_NAME_BUFFER = 80


class ThreadResultError(RuntimeError):
    """A threading primitive reported an unexpected error code."""

    def __init__(self, file: str, line: int, res: int) -> None:
        super().__init__(
            f"{file}:{line}: internal error: pthread result {res} ({os.strerror(res)})"
        )
        self.file = file
        self.line = line
        self.res = res


def thread_name(name: str) -> str:
    """Return the full thread name used for name, limited like the fixed buffer."""
    return f"mpv/{name}"[: _NAME_BUFFER - 1]


def set_thread_name(name: str) -> str:
    """Name the calling thread (for debuggers) and return the name set."""
    full = thread_name(name)
    threading.current_thread().name = full
    return full


def check_result(file: str, line: int, res: int) -> int:
    """Return res, raising ThreadResultError unless it is 0 or ETIMEDOUT."""
    if res and res != errno.ETIMEDOUT:
        raise ThreadResultError(file, line, res)
    return res


def recursive_lock() -> threading.RLock:
    """Return a lock the owning thread may acquire repeatedly."""
    return threading.RLock()