"""Store interfaces for the space registry.

Two kinds of durable state exist:

- the **index** (``{data_root}/spaces-index.json``): id -> root mapping,
  owned by an ``IndexStore``;
- per-space **metadata** (``{root}/.halo/meta.json``): name, icon,
  timestamps and preferences, owned by a ``MetaStore``.

The two are not written transactionally as a pair.  Readers recover from a
crash between the writes through self-healing reads (stale index entries are
pruned) and, if the index itself is unreadable, through a full rescan.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from halospace.spaces.models.index import IndexEntry
from halospace.spaces.models.space import SpaceMeta


@runtime_checkable
class IndexStore(Protocol):
    """Durable id -> root mapping."""

    def load(self) -> dict[str, IndexEntry]:
        """Load the index, migrating legacy or unreadable files.  Never raises."""
        ...

    def persist(self, entries: dict[str, IndexEntry]) -> bool:
        """Atomically replace the index file.  Returns ``False`` on failure."""
        ...


@runtime_checkable
class MetaStore(Protocol):
    """Reads and writes ``{root}/.halo/meta.json``."""

    def exists(self, root: Path) -> bool:
        ...

    def read(self, root: Path) -> SpaceMeta:
        """Raises ``MetaNotFoundError`` / ``MetaCorruptError`` / ``OSError``."""
        ...

    def write(self, root: Path, meta: SpaceMeta) -> None:
        ...
