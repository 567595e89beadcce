"""A value whose read-modify-write operations are serialised by a lock."""

from __future__ import annotations

import threading
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class AtomicValue(Generic[T]):
    """Holds one value; every operation on it is atomic with respect to the others."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> T:
        with self._lock:
            return self._value

    def store(self, value: T) -> None:
        with self._lock:
            self._value = value

    def _fetch_op(self, op: Any, operand: Any) -> T:
        with self._lock:
            old = self._value
            self._value = op(old, operand)
            return old

    def fetch_add(self, value: Any) -> T:
        """Add value and return the previous value."""
        return self._fetch_op(lambda a, b: a + b, value)

    def fetch_and(self, value: Any) -> T:
        """Bitwise-and with value and return the previous value."""
        return self._fetch_op(lambda a, b: a & b, value)

    def fetch_or(self, value: Any) -> T:
        """Bitwise-or with value and return the previous value."""
        return self._fetch_op(lambda a, b: a | b, value)

    def exchange(self, value: T) -> T:
        """Store value and return the previous value."""
        with self._lock:
            old = self._value
            self._value = value
            return old

    def compare_exchange(self, expected: T, new: T) -> tuple[bool, T]:
        """Store new if the value equals expected.

        Returns (True, expected) on success, else (False, current value).
        """
        with self._lock:
            if self._value == expected:
                self._value = new
                return True, expected
            return False, self._value

    def __repr__(self) -> str:
        return f"AtomicValue({self.load()!r})"