"""Bounded LRU cache for materialized spaces.

Implemented as a dict of nodes threaded on a doubly linked list with two
sentinels, so ``get`` (touch), ``put`` and eviction are all O(1) and the
recency order is explicit rather than an artifact of dict insertion order.

The temp space is never stored here; the repository recomputes it on every
access.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

from loguru import logger

K = TypeVar("K")
V = TypeVar("V")


class _Node(Generic[K, V]):
    __slots__ = ("key", "next", "prev", "value")

    def __init__(self, key: K | None = None, value: V | None = None) -> None:
        self.key = key
        self.value = value
        self.prev: _Node[K, V] | None = None
        self.next: _Node[K, V] | None = None


class LRUCache(Generic[K, V]):
    """Fixed-capacity mapping that evicts the least recently used key."""

    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            msg = f"LRU capacity must be >= 1, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._nodes: dict[K, _Node[K, V]] = {}
        # head.next is the least recent entry, tail.prev the most recent.
        self._head: _Node[K, V] = _Node()
        self._tail: _Node[K, V] = _Node()
        self._head.next = self._tail
        self._tail.prev = self._head

    # -- Linked list -----------------------------------------------------------

    def _unlink(self, node: _Node[K, V]) -> None:
        node.prev.next = node.next
        node.next.prev = node.prev
        node.prev = node.next = None

    def _append(self, node: _Node[K, V]) -> None:
        last = self._tail.prev
        last.next = node
        node.prev = last
        node.next = self._tail
        self._tail.prev = node

    # -- Mapping ---------------------------------------------------------------

    def get(self, key: K) -> V | None:
        """Return the cached value and mark it most recently used."""
        node = self._nodes.get(key)
        if node is None:
            return None
        self._unlink(node)
        self._append(node)
        return node.value

    def put(self, key: K, value: V) -> None:
        """Insert or overwrite ``key`` as most recent, evicting past capacity."""
        node = self._nodes.get(key)
        if node is not None:
            node.value = value
            self._unlink(node)
            self._append(node)
            return

        node = _Node(key, value)
        self._nodes[key] = node
        self._append(node)
        if len(self._nodes) > self.capacity:
            oldest = self._head.next
            self._unlink(oldest)
            del self._nodes[oldest.key]
            logger.debug("Space cache: evicted {}", oldest.key)

    def pop(self, key: K) -> V | None:
        node = self._nodes.pop(key, None)
        if node is None:
            return None
        self._unlink(node)
        return node.value

    def clear(self) -> None:
        self._nodes.clear()
        self._head.next = self._tail
        self._tail.prev = self._head

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        return list(iter(self))

    def __iter__(self) -> Iterator[K]:
        node = self._head.next
        while node is not self._tail:
            yield node.key
            node = node.next

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
