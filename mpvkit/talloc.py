"""Hierarchical allocations: freeing a parent also frees all of its children."""

from __future__ import annotations

import atexit
import sys
import threading
from typing import Callable, Optional

SIZE_MAX = 2**64 - 1
HEADER_SIZE = 80
# Requests at or above this size can never succeed.
MAX_ALLOC = SIZE_MAX - HEADER_SIZE

_STRING_MARK = object()
_NAME_LIMIT = 49

Destructor = Callable[["Allocation"], None]


class _LeakTracker:
    """Records live allocations made while leak reporting is enabled."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._live: dict[int, Allocation] = {}
        self.enabled = False
        self._registered = False

    def enable(self) -> None:
        with self._lock:
            self.enabled = True
            if not self._registered:
                atexit.register(self._print_at_exit)
                self._registered = True

    def add(self, allocation: Allocation) -> bool:
        if not self.enabled:
            return False
        with self._lock:
            self._live[id(allocation)] = allocation
        return True

    def remove(self, allocation: Allocation) -> None:
        with self._lock:
            self._live.pop(id(allocation), None)

    def report(self) -> str:
        with self._lock:
            blocks = list(self._live.values())
            self._live.clear()
        for block in blocks:
            block._tracked = False
        if not blocks:
            return ""
        lines = [
            "Blocks not freed:\n",
            f"  {'Ptr':<20} {'Bytes':>10} {'C. Bytes':>10}  Name\n",
        ]
        total = 0
        for block in blocks:
            if block._is_listed():
                lines.append(
                    f"  {hex(id(block)):<20} {block.size:>10} "
                    f"{block._children_size():>10}  {block._display_name()}\n"
                )
            total += block.size
        lines.append(f"{total} bytes in {len(blocks)} blocks.\n")
        return "".join(lines)

    def _print_at_exit(self) -> None:
        text = self.report()
        if text:
            sys.stderr.write(text)


_tracker = _LeakTracker()


def _check_size(size: int) -> None:
    if size < 0:
        raise ValueError(f"negative allocation size: {size}")
    if size >= MAX_ALLOC:
        raise MemoryError(f"allocation of {size} bytes is too large")


class Allocation:
    """A block of bytes that belongs to an optional parent allocation."""

    def __init__(
        self, size: int, parent: Optional[Allocation] = None, zero: bool = False
    ) -> None:
        _check_size(size)
        # Contents always start zeroed; `zero` records that the caller relies on it.
        self.zero = zero
        self.data = bytearray(size)
        self._parent: Optional[Allocation] = None
        self._children: list[Allocation] = []
        self._destructor: Optional[Destructor] = None
        self._name: object = None
        self._freed = False
        self._tracked = _tracker.add(self)
        self.set_parent(parent)

    def _check(self) -> None:
        if self._freed:
            raise RuntimeError("allocation has already been freed")

    @property
    def size(self) -> int:
        self._check()
        return len(self.data)

    @property
    def parent(self) -> Optional[Allocation]:
        self._check()
        return self._parent

    @property
    def children(self) -> tuple[Allocation, ...]:
        """Direct children, in the order they are freed (newest first)."""
        self._check()
        return tuple(reversed(self._children))

    @property
    def freed(self) -> bool:
        return self._freed

    def set_parent(self, parent: Optional[Allocation]) -> None:
        """Move this allocation under parent, or detach it when parent is None."""
        self._check()
        if parent is not None:
            parent._check()
            ancestor: Optional[Allocation] = parent
            while ancestor is not None:
                if ancestor is self:
                    raise ValueError("an allocation cannot become its own descendant")
                ancestor = ancestor._parent
        if self._parent is not None:
            self._parent._children.remove(self)
        self._parent = parent
        if parent is not None:
            parent._children.append(self)

    def resize(self, size: int) -> Allocation:
        """Change the size, keeping the common prefix of the contents."""
        self._check()
        _check_size(size)
        if size == len(self.data):
            return self
        if self._tracked:
            _tracker.remove(self)
        if size < len(self.data):
            del self.data[size:]
        else:
            self.data.extend(bytes(size - len(self.data)))
        self._tracked = _tracker.add(self)
        return self

    def free(self) -> None:
        """Run the destructor, free all children, then release this block."""
        if self._freed:
            return
        if self._destructor is not None:
            self._destructor(self)
        self.free_children()
        self.set_parent(None)
        if self._tracked:
            _tracker.remove(self)
            self._tracked = False
        self._freed = True

    def free_children(self) -> None:
        """Free every descendant, newest child first, but keep this block."""
        self._check()
        while self._children:
            self._children[-1].free()

    def set_destructor(self, destructor: Optional[Destructor]) -> None:
        self._check()
        self._destructor = destructor

    def set_location(self, name: Optional[str]) -> Allocation:
        """Set the name shown for this block in the leak report."""
        self._check()
        self._name = name
        return self

    def mark_as_string(self) -> Allocation:
        """Show the block's contents literally in the leak report."""
        self._check()
        self._name = _STRING_MARK
        return self

    def _is_listed(self) -> bool:
        parent = self._parent
        return parent is None or (bool(parent._children) and parent._children[0] is self)

    def _children_size(self) -> int:
        return sum(len(c.data) + c._children_size() for c in self._children)

    def _display_name(self) -> str:
        if self._name is _STRING_MARK:
            raw = bytes(self.data).split(b"\0", 1)[0]
            text = "'" + raw.decode("latin-1") + "'"
        elif isinstance(self._name, str):
            text = self._name.split("\0", 1)[0]
        else:
            text = ""
        text = text[:_NAME_LIMIT]
        return "".join("." if ord(c) < 0x20 else c for c in text)

    def __repr__(self) -> str:
        state = "freed" if self._freed else f"size={len(self.data)}"
        return f"<Allocation {state}>"


def alloc_size(parent: Optional[Allocation], size: int) -> Allocation:
    """Allocate size bytes under parent."""
    return Allocation(size, parent)


def zalloc_size(parent: Optional[Allocation], size: int) -> Allocation:
    """Allocate size zeroed bytes under parent."""
    return Allocation(size, parent, zero=True)


def realloc_size(
    parent: Optional[Allocation], allocation: Optional[Allocation], size: int
) -> Optional[Allocation]:
    """Resize allocation; size 0 frees it and returns None, None allocates anew.

    parent is used only when allocation is None.
    """
    _check_size(size)
    if size == 0:
        if allocation is not None:
            allocation.free()
        return None
    if allocation is None:
        return alloc_size(parent, size)
    return allocation.resize(size)


def enable_leak_report() -> None:
    """Track allocations made from now on and report unfreed ones at exit."""
    _tracker.enable()


def leak_report() -> str:
    """Return the report of tracked blocks not yet freed, and stop tracking them."""
    return _tracker.report()