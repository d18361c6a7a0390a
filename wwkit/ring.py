"""A fixed-capacity double-ended ring buffer."""

from __future__ import annotations

from typing import Any


class CycleQueue:
    """Bounded queue backed by a circular array of ``capacity`` slots."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._slots: list[Any] = [None] * capacity
        self._head = 0
        self._tail = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def push(self, item: Any) -> None:
        """Append ``item`` at the back; raise IndexError when full."""
        if self.full():
            raise IndexError("queue is full")
        self._slots[self._tail] = item
        self._tail = (self._tail + 1) % self.capacity
        self._size += 1

    def push_front(self, item: Any) -> None:
        """Insert ``item`` at the front; raise IndexError when full."""
        if self.full():
            raise IndexError("queue is full")
        self._head = (self._head - 1) % self.capacity
        self._slots[self._head] = item
        self._size += 1

    def pop(self) -> Any:
        """Remove and return the front item; raise IndexError when empty."""
        if self._size == 0:
            raise IndexError("pop from empty queue")
        item = self._slots[self._head]
        self._slots[self._head] = None
        self._head = (self._head + 1) % self.capacity
        self._size -= 1
        return item

    def front(self) -> Any:
        """Return the front item without removing it."""
        if self._size == 0:
            raise IndexError("queue is empty")
        return self._slots[self._head]

    def pop_back(self) -> Any:
        """Remove and return the back item; raise IndexError when empty."""
        if self._size == 0:
            raise IndexError("pop from empty queue")
        self._tail = (self._tail - 1) % self.capacity
        item = self._slots[self._tail]
        self._slots[self._tail] = None
        self._size -= 1
        return item

    def clear(self) -> None:
        self._slots = [None] * self.capacity
        self._head = 0
        self._tail = 0
        self._size = 0

    def full(self) -> bool:
        return self._size == self.capacity

    def items(self) -> list[Any]:
        """Return the items from front to back."""
        capacity = self.capacity
        return [self._slots[(self._head + offset) % capacity] for offset in range(self._size)]

    def __len__(self) -> int:
        return self._size