"""Local filesystem index store.

Stores the id -> root mapping at ``{data_root}/spaces-index.json``::

    {"version": 2, "spaces": {"<id>": {"path": "<absolute root>"}}}

Loading a v2 file is a direct parse.  Anything else (missing file, invalid
JSON, the legacy v1 ``{"customPaths": [...]}`` shape, or a document matching
no known shape) triggers a one-time migration: the default spaces directory
and any legacy custom paths are scanned for readable ``meta.json`` files, and
the rebuilt map is persisted as v2 straight away.

Writes are atomic (temp sibling + rename).  A failed persist is logged and
reported as ``False``; the caller's in-memory map stays authoritative until
the next successful persist.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from loguru import logger

from halospace.spaces.errors import SpaceError
from halospace.spaces.models.index import IndexEntry, SpaceIndexV1, SpaceIndexV2, parse_index
from halospace.spaces.models.space import SpaceMeta
from halospace.spaces.store.base import MetaStore
from halospace.spaces.store.files import atomic_write, read_file
from halospace.spaces.store.meta import LocalMetaStore


class LocalIndexStore:
    """Filesystem implementation of the IndexStore protocol."""

    def __init__(
        self,
        index_path: str | Path,
        spaces_dir: str | Path,
        meta_store: MetaStore | None = None,
    ) -> None:
        self._index_path = Path(index_path)
        self._spaces_dir = Path(spaces_dir)
        self._meta = meta_store or LocalMetaStore()

    @property
    def index_path(self) -> Path:
        return self._index_path

    # -- Load ------------------------------------------------------------------

    def load(self) -> dict[str, IndexEntry]:
        raw = self._read_raw()
        parsed = parse_index(raw)

        if isinstance(parsed, SpaceIndexV2):
            entries = dict(parsed.spaces)
            logger.info("Space index v2 loaded: {} spaces", len(entries))
            return entries

        logger.info("Migrating space index to v2...")
        legacy = parsed.custom_paths if isinstance(parsed, SpaceIndexV1) else []
        entries = self._migrate(legacy)

        lost = {sid: path for sid, path in _rejected_v2_entries(raw).items() if sid not in entries}
        if lost:
            logger.warning(
                "Space index {} had a malformed v2 document; entries not recovered by the rescan: {}",
                self._index_path,
                lost,
            )

        self.persist(entries)
        logger.info("Space index v2 migration complete: {} spaces", len(entries))
        return entries

    def _read_raw(self) -> Any | None:
        """Decode the index file, or ``None`` if missing or unparsable."""
        try:
            raw = read_file(self._index_path)
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Space index {} unreadable ({}), will rebuild", self._index_path, exc)
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Space index {} corrupted, will rebuild", self._index_path)
            return None

    # -- Migration -------------------------------------------------------------

    def _migrate(self, custom_paths: Iterable[str]) -> dict[str, IndexEntry]:
        entries: dict[str, IndexEntry] = {}
        for root in self._scan_default_dir():
            self._register_scanned(entries, root)
        for custom in custom_paths:
            root = Path(custom)
            if root.exists():
                self._register_scanned(entries, root)
        return entries

    def _scan_default_dir(self) -> list[Path]:
        if not self._spaces_dir.exists():
            return []
        try:
            children = sorted(self._spaces_dir.iterdir())
        except OSError as exc:
            logger.error("Error scanning spaces directory {}: {}", self._spaces_dir, exc)
            return []

        roots = []
        for child in children:
            try:
                if child.is_dir():
                    roots.append(child)
            except OSError:
                continue
        return roots

    def _register_scanned(self, entries: dict[str, IndexEntry], root: Path) -> None:
        meta = self._try_read_meta(root)
        if meta is not None and meta.id not in entries:
            entries[meta.id] = IndexEntry(path=root)

    def _try_read_meta(self, root: Path) -> SpaceMeta | None:
        try:
            return self._meta.read(root)
        except (SpaceError, OSError) as exc:
            logger.debug("Skipping {} during index scan: {}", root, exc)
            return None

    # -- Persist ---------------------------------------------------------------

    def persist(self, entries: dict[str, IndexEntry]) -> bool:
        document = SpaceIndexV2(spaces=entries)
        data = document.model_dump_json(indent=2)
        try:
            atomic_write(self._index_path, data)
        except OSError as exc:
            logger.error("Failed to persist space index {}: {}", self._index_path, exc)
            return False
        return True


def _rejected_v2_entries(raw: Any) -> dict[str, Any]:
    """Entries of a rejected v2 document, keyed by id, for the recovery log."""
    if not isinstance(raw, dict) or raw.get("version") != 2:
        return {}
    spaces = raw.get("spaces")
    if not isinstance(spaces, dict):
        return {}
    return {
        str(space_id): entry.get("path") if isinstance(entry, dict) else entry
        for space_id, entry in spaces.items()
    }
