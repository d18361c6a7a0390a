"""A self-balancing AVL tree and an ordered map built on it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(eq=False)
class AvlNode(Generic[T]):
    """A tree node; leaves have height 0."""

    data: T
    left: AvlNode[T] | None = field(default=None, repr=False)
    right: AvlNode[T] | None = field(default=None, repr=False)
    parent: AvlNode[T] | None = field(default=None, repr=False)
    height: int = 0


def _height(node: AvlNode[Any] | None) -> int:
    return -1 if node is None else node.height


def _connect_left(parent: AvlNode[Any], child: AvlNode[Any] | None) -> None:
    parent.left = child
    if child is not None:
        child.parent = parent


def _connect_right(parent: AvlNode[Any], child: AvlNode[Any] | None) -> None:
    parent.right = child
    if child is not None:
        child.parent = parent


def _update_height(node: AvlNode[Any]) -> None:
    node.height = max(_height(node.left), _height(node.right)) + 1


def _reattach(parent: AvlNode[Any] | None, old: AvlNode[Any], new: AvlNode[Any]) -> None:
    new.parent = parent
    if parent is not None:
        if parent.left is old:
            _connect_left(parent, new)
        else:
            _connect_right(parent, new)


def _rotate_right(node: AvlNode[Any]) -> AvlNode[Any]:
    pivot = node.left
    assert pivot is not None
    parent = node.parent
    _connect_left(node, pivot.right)
    _connect_right(pivot, node)
    _update_height(node)
    _update_height(pivot)
    _reattach(parent, node, pivot)
    return pivot


def _rotate_left(node: AvlNode[Any]) -> AvlNode[Any]:
    pivot = node.right
    assert pivot is not None
    parent = node.parent
    _connect_right(node, pivot.left)
    _connect_left(pivot, node)
    _update_height(node)
    _update_height(pivot)
    _reattach(parent, node, pivot)
    return pivot


class AvlTree(Generic[T]):
    """AVL tree ordered by ``<``; equal items are kept, to the right."""

    def __init__(self) -> None:
        self._root: AvlNode[T] | None = None
        self._size = 0

    def insert(self, data: T) -> AvlNode[T]:
        """Insert ``data`` and return its new node."""
        node = AvlNode(data)
        parent = self.find(data)
        if parent is None:
            self._root = node
        else:
            if data < parent.data:
                _connect_left(parent, node)
            else:
                _connect_right(parent, node)
            self._rebalance_upwards(parent)
        self._size += 1
        return node

    def remove(self, node: AvlNode[T] | None) -> None:
        """Remove ``node`` from the tree; ``None`` is ignored."""
        if node is None:
            return
        if self._root is None:
            raise IndexError("remove from empty tree")

        parent = node.parent
        if node.left is not None and node.right is not None:
            largest_parent = node
            largest = node.left
            while largest.right is not None:
                largest_parent = largest
                largest = largest.right
            node.data = largest.data
            if largest_parent.left is largest:
                _connect_left(largest_parent, largest.left)
            else:
                _connect_right(largest_parent, largest.left)
            self._rebalance_upwards(largest_parent)
        else:
            child = node.left if node.left is not None else node.right
            if parent is None:
                self._root = child
                if child is not None:
                    child.parent = None
            else:
                if parent.left is node:
                    _connect_left(parent, child)
                else:
                    _connect_right(parent, child)
                self._rebalance_upwards(parent)
        self._size -= 1

    def smallest(self) -> AvlNode[T]:
        """Return the node holding the smallest item."""
        current = self._root
        if current is None:
            raise IndexError("empty tree")
        while current.left is not None:
            current = current.left
        return current

    def items(self) -> list[T]:
        """Return all items in pre-order."""
        result: list[T] = []
        stack = [self._root] if self._root is not None else []
        while stack:
            current = stack.pop()
            result.append(current.data)
            if current.right is not None:
                stack.append(current.right)
            if current.left is not None:
                stack.append(current.left)
        return result

    def clear(self) -> None:
        while self._root is not None:
            self.remove(self._root)

    def height(self) -> int:
        """Height of the tree; -1 when empty."""
        return _height(self._root)

    def find_exact(self, data: T) -> AvlNode[T] | None:
        """Return a node whose item is neither less nor greater than ``data``."""
        current = self._root
        while current is not None:
            if data < current.data:
                current = current.left
            elif current.data < data:
                current = current.right
            else:
                return current
        return None

    def find(self, data: T) -> AvlNode[T] | None:
        """Return the node under which ``data`` would be inserted."""
        current = self._root
        if current is None:
            return None
        while True:
            child = current.left if data < current.data else current.right
            if child is None:
                return current
            current = child

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._root is not None

    def _rebalance_upwards(self, node: AvlNode[T]) -> None:
        while True:
            left_height = _height(node.left)
            right_height = _height(node.right)
            if abs(left_height - right_height) > 1:
                if left_height > right_height:
                    child = node.left
                    assert child is not None
                    if child.right is None or (
                        child.left is not None and child.left.height > child.right.height
                    ):
                        node = _rotate_right(node)
                    else:
                        node.left = _rotate_left(child)
                        node = _rotate_right(node)
                else:
                    child = node.right
                    assert child is not None
                    if child.left is None or (
                        child.right is not None and child.left.height <= child.right.height
                    ):
                        node = _rotate_left(node)
                    else:
                        node.right = _rotate_right(child)
                        node = _rotate_left(node)
            else:
                _update_height(node)
            if node.parent is None:
                break
            node = node.parent
        self._root = node
        node.parent = None


class _Entry:
    __slots__ = ("key", "value")

    def __init__(self, key: Any, value: Any = None) -> None:
        self.key = key
        self.value = value

    def __lt__(self, other: _Entry) -> bool:
        return self.key < other.key


class TreeMap:
    """A map with unique keys kept in an AVL tree."""

    def __init__(self, items: Iterable[tuple[Any, Any]] | None = None) -> None:
        self._tree: AvlTree[_Entry] = AvlTree()
        for key, value in items or ():
            self.insert(key, value)

    def _node(self, key: Any) -> AvlNode[_Entry]:
        node = self._tree.find_exact(_Entry(key))
        if node is None:
            raise KeyError(key)
        return node

    def insert(self, key: Any, value: Any) -> None:
        """Add a new key; raise KeyError if it is already present."""
        if key in self:
            raise KeyError(f"key already exists: {key!r}")
        self._tree.insert(_Entry(key, value))

    def update(self, key: Any, value: Any) -> None:
        """Replace the value of an existing key."""
        self._node(key).data.value = value

    def remove(self, key: Any) -> None:
        self._tree.remove(self._node(key))

    def get(self, key: Any) -> Any:
        """Return the value stored for ``key``; raise KeyError if absent."""
        return self._node(key).data.value

    def items(self) -> list[tuple[Any, Any]]:
        """Return the ``(key, value)`` pairs in the tree's pre-order."""
        return [(entry.key, entry.value) for entry in self._tree.items()]

    def clear(self) -> None:
        self._tree.clear()

    def copy(self) -> TreeMap:
        return TreeMap(self.items())

    def __contains__(self, key: Any) -> bool:
        return self._tree.find_exact(_Entry(key)) is not None

    def __len__(self) -> int:
        return len(self._tree)