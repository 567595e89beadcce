"""String, duplication and growable-array helpers built on hierarchical allocations."""

from __future__ import annotations

from typing import Any, Generic, Iterator, Optional, TypeVar, Union

from mpvkit.talloc import SIZE_MAX, Allocation, alloc_size, realloc_size

Text = Union[str, bytes, bytearray]
T = TypeVar("T")


def calc_array_size(element_size: int, count: int) -> int:
    """Return element_size * count, saturated at SIZE_MAX on overflow."""
    if element_size <= 0:
        raise ValueError(f"element size must be positive: {element_size}")
    if count < 0:
        raise ValueError(f"negative element count: {count}")
    if count > SIZE_MAX // element_size:
        return SIZE_MAX
    return element_size * count


def calc_prealloc_elems(nextidx: int) -> int:
    """Return a good new element count (> nextidx) for appending at nextidx.

    SIZE_MAX is returned when the calculation would overflow.
    """
    if nextidx < 0:
        raise ValueError(f"negative index: {nextidx}")
    if nextidx >= SIZE_MAX // 2 - 1:
        return SIZE_MAX
    return (nextidx + 1) * 2


def new_context(parent: Optional[Allocation]) -> Allocation:
    """Create an empty (size 0) allocation under parent."""
    return alloc_size(parent, 0)


def steal(parent: Optional[Allocation], allocation: Optional[Allocation]) -> Optional[Allocation]:
    """Move allocation under parent (or detach it when parent is None) and return it."""
    if allocation is not None:
        allocation.set_parent(parent)
    return allocation


def memdup(parent: Optional[Allocation], data: Union[bytes, bytearray, memoryview, Allocation, None]) -> Optional[Allocation]:
    """Return a new allocation under parent holding a copy of data."""
    if data is None:
        return None
    raw = bytes(data.data) if isinstance(data, Allocation) else bytes(data)
    result = alloc_size(parent, len(raw))
    result.data[:] = raw
    return result


def _to_bytes(text: Text) -> bytes:
    if isinstance(text, str):
        return text.encode("utf-8")
    return bytes(text)


def _strlen(allocation: Optional[Allocation]) -> int:
    if allocation is None:
        return 0
    end = allocation.data.find(0)
    return len(allocation.data) if end < 0 else end


def _buffer_end(allocation: Optional[Allocation]) -> int:
    size = allocation.size if allocation is not None else 0
    return size - 1 if size > 0 else 0


def _write_at(allocation: Optional[Allocation], at: int, payload: bytes) -> Allocation:
    size = allocation.size if allocation is not None else 0
    needed = at + len(payload) + 1
    if size < needed:
        allocation = realloc_size(None, allocation, needed)
    assert allocation is not None
    allocation.data[at : at + len(payload)] = payload
    allocation.data[at + len(payload)] = 0
    allocation.mark_as_string()
    return allocation


def _strndup_append_at(
    allocation: Optional[Allocation], at: int, append: Optional[Text], limit: int
) -> Optional[Allocation]:
    size = allocation.size if allocation is not None else 0
    if at > size:
        raise ValueError(f"append position {at} lies past the allocation size {size}")
    if allocation is None and append is None:
        return None
    if limit < 0:
        raise ValueError(f"negative length limit: {limit}")
    payload = b""
    if append is not None:
        payload = _to_bytes(append).split(b"\0", 1)[0][:limit]
    return _write_at(allocation, at, payload)


def string_value(allocation: Optional[Allocation]) -> Optional[str]:
    """Return the NUL-terminated text held by allocation, or None."""
    if allocation is None:
        return None
    return bytes(allocation.data[: _strlen(allocation)]).decode("utf-8", errors="replace")


def strdup(parent: Optional[Allocation], text: Optional[Text]) -> Optional[Allocation]:
    """Return a copy of text as a string allocation under parent."""
    if text is None:
        return None
    return strndup(parent, text, SIZE_MAX)


def strndup(parent: Optional[Allocation], text: Optional[Text], n: int) -> Optional[Allocation]:
    """Copy at most n bytes of text (stopping at an embedded NUL) under parent."""
    if text is None:
        return None
    result = _strndup_append_at(None, 0, text, n)
    steal(parent, result)
    return result


def strdup_append(allocation: Optional[Allocation], text: Optional[Text]) -> Optional[Allocation]:
    """Append text after the string's terminating NUL position; returns the allocation."""
    return _strndup_append_at(allocation, _strlen(allocation), text, SIZE_MAX)


def strdup_append_buffer(allocation: Optional[Allocation], text: Optional[Text]) -> Optional[Allocation]:
    """Append text over the last byte of the allocation; returns the allocation."""
    return _strndup_append_at(allocation, _buffer_end(allocation), text, SIZE_MAX)


def strndup_append(allocation: Optional[Allocation], text: Optional[Text], n: int) -> Optional[Allocation]:
    """Like strdup_append, but copy at most n bytes of text."""
    return _strndup_append_at(allocation, _strlen(allocation), text, n)


def strndup_append_buffer(allocation: Optional[Allocation], text: Optional[Text], n: int) -> Optional[Allocation]:
    """Like strdup_append_buffer, but copy at most n bytes of text."""
    return _strndup_append_at(allocation, _buffer_end(allocation), text, n)


def _format(fmt: Text, args: tuple[Any, ...]) -> bytes:
    return _to_bytes(fmt % args)


def _asprintf_append_at(allocation: Optional[Allocation], at: int, fmt: Text, args: tuple[Any, ...]) -> Allocation:
    size = allocation.size if allocation is not None else 0
    if at > size:
        raise ValueError(f"append position {at} lies past the allocation size {size}")
    return _write_at(allocation, at, _format(fmt, args))


def asprintf(parent: Optional[Allocation], fmt: Text, *args: Any) -> Allocation:
    """Format printf-style and return the result as a string allocation under parent."""
    result = _asprintf_append_at(None, 0, fmt, args)
    result.set_parent(parent)
    return result


def asprintf_append(allocation: Optional[Allocation], fmt: Text, *args: Any) -> Allocation:
    """Append formatted text after the current string; returns the allocation."""
    return _asprintf_append_at(allocation, _strlen(allocation), fmt, args)


def asprintf_append_buffer(allocation: Optional[Allocation], fmt: Text, *args: Any) -> Allocation:
    """Append formatted text over the last byte of the allocation; returns it."""
    return _asprintf_append_at(allocation, _buffer_end(allocation), fmt, args)


class TArray(Generic[T]):
    """A growable array whose storage is an allocation owned by a parent context."""

    def __init__(self, parent: Optional[Allocation] = None, element_size: int = 8) -> None:
        if element_size <= 0:
            raise ValueError(f"element size must be positive: {element_size}")
        self.parent = parent
        self.element_size = element_size
        self.allocation: Optional[Allocation] = None
        self._items: list[Optional[T]] = []

    @property
    def capacity(self) -> int:
        """Number of elements the current storage can hold."""
        if self.allocation is None or self.allocation.freed:
            return 0
        return self.allocation.size // self.element_size

    def grow(self, nextidx: int) -> None:
        """Make sure index nextidx is available, preallocating extra room."""
        if nextidx >= self.capacity:
            if self.allocation is not None and self.allocation.freed:
                self.allocation = None
            size = calc_array_size(self.element_size, calc_prealloc_elems(nextidx))
            self.allocation = realloc_size(self.parent, self.allocation, size)

    def append(self, item: T) -> None:
        self.grow(len(self._items))
        self._items.append(item)

    def insert_at(self, at: int, item: T) -> None:
        """Insert item at position at (0 <= at <= len)."""
        if not 0 <= at <= len(self._items):
            raise IndexError(f"insert position {at} out of range")
        self.grow(len(self._items))
        self._items.insert(at, item)

    def insert_n_at(self, at: int, count: int) -> None:
        """Insert count unset (None) entries at position at."""
        if not 0 <= at <= len(self._items):
            raise IndexError(f"insert position {at} out of range")
        if count < 0:
            raise ValueError(f"negative count: {count}")
        self.grow(len(self._items) + count)
        self._items[at:at] = [None] * count

    def remove_at(self, at: int) -> None:
        """Remove the entry at position at without shrinking the storage."""
        if not 0 <= at < len(self._items):
            raise IndexError(f"remove position {at} out of range")
        del self._items[at]

    def pop(self) -> Optional[T]:
        """Remove and return the last entry; IndexError when empty."""
        if not self._items:
            raise IndexError("pop from empty array")
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Optional[T]:
        return self._items[index]

    def __setitem__(self, index: int, value: T) -> None:
        self._items[index] = value

    def __iter__(self) -> Iterator[Optional[T]]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"TArray({self._items!r}, capacity={self.capacity})"