"""In-process space registry.

The in-memory working copy of the space index.  Populated from the
``IndexStore`` on ``initialize()`` (or lazily on first access) and held for
the life of the owning repository; there is no periodic refresh.

Mutations update the map then persist immediately.  Reads validate entries:
an entry whose root no longer holds a ``meta.json`` is dropped and the index
re-persisted, so the registry heals itself instead of erroring.

Not thread-safe.  Callers serialize access (one repository per process).
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from halospace.spaces.models.index import IndexEntry
from halospace.spaces.store.base import IndexStore, MetaStore


class SpaceRegistry:
    def __init__(self, index_store: IndexStore, meta_store: MetaStore) -> None:
        self._index = index_store
        self._meta = meta_store
        self._entries: dict[str, IndexEntry] | None = None

    # -- Lifecycle -------------------------------------------------------------

    def initialize(self) -> None:
        """Load the index from disk.  Idempotent."""
        if self._entries is None:
            self._entries = self._index.load()

    def close(self) -> None:
        """Drop in-memory state.  The next access reloads from disk."""
        self._entries = None

    @property
    def is_initialized(self) -> bool:
        return self._entries is not None

    @property
    def _map(self) -> dict[str, IndexEntry]:
        if self._entries is None:
            self.initialize()
        return self._entries

    def persist(self) -> bool:
        return self._index.persist(self._map)

    # -- Mutation --------------------------------------------------------------

    def set(self, space_id: str, entry: IndexEntry) -> None:
        logger.debug("Registry: set {} -> {}", space_id, entry.path)
        self._map[space_id] = entry
        self.persist()

    def delete(self, space_id: str) -> IndexEntry | None:
        entry = self._map.pop(space_id, None)
        if entry is not None:
            logger.debug("Registry: delete {}", space_id)
            self.persist()
        return entry

    def discard(self, space_ids: Iterable[str]) -> int:
        """Remove several entries with a single persist.  Returns the count removed."""
        removed = [sid for sid in space_ids if self._map.pop(sid, None) is not None]
        if removed:
            self.persist()
        return len(removed)

    # -- Query -----------------------------------------------------------------

    def get(self, space_id: str) -> IndexEntry | None:
        """Return the entry if its root still holds a ``meta.json``, pruning it otherwise."""
        entry = self._map.get(space_id)
        if entry is None:
            return None
        if not self._meta.exists(entry.path):
            logger.warning("Space {} path invalid ({}), removing from index", space_id, entry.path)
            self.delete(space_id)
            return None
        return entry

    def list(self) -> list[tuple[str, IndexEntry]]:
        """Return all valid entries, pruning dead ones in one persist."""
        valid = []
        dead = []
        for space_id, entry in self._map.items():
            if self._meta.exists(entry.path):
                valid.append((space_id, entry))
            else:
                logger.warning("Space {} at {} no longer valid, removing from index", space_id, entry.path)
                dead.append(space_id)
        self.discard(dead)
        return valid

    def paths(self) -> list[Path]:
        """Registered roots, unvalidated."""
        return [entry.path for entry in self._map.values()]

    def __contains__(self, space_id: object) -> bool:
        return space_id in self._map

    def __len__(self) -> int:
        return len(self._map)
