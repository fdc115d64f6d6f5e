"""Space repository: the public API of the space registry.

Composes the ``SpaceRegistry`` (id -> root), a ``MetaStore``
(``{root}/.halo/meta.json``) and an ``LRUCache`` of materialized spaces.

Conventions
-----------

- Public nullable / boolean methods never raise across this boundary.
  Failures are logged and reported as ``None`` / ``False``.  The ``try_*``
  variants return a ``SpaceResult`` that says *why* (not found, corrupt,
  I/O error, permission denied).  ``create_space`` is the exception: a
  filesystem failure while creating the skeleton propagates.
- The temp space (``halo-temp``) has no registry entry, is never cached and
  is rebuilt on every access.  Its timestamps are fixed at import time.
- ``list_spaces`` is a batch read for listings and never touches the cache.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from pathlib import Path

import click
from loguru import logger

from halospace.spaces.cache import LRUCache
from halospace.spaces.errors import SpaceError, SpaceErrorKind, SpaceResult
from halospace.spaces.models.api import SpaceCreate, SpaceUpdate
from halospace.spaces.models.index import IndexEntry
from halospace.spaces.models.space import (
    TEMP_SPACE_ID,
    Space,
    SpaceLayoutPreferences,
    SpaceMeta,
    SpacePreferences,
    control_dir,
    utc_now,
)
from halospace.spaces.registry import SpaceRegistry
from halospace.spaces.settings import HaloSettings
from halospace.spaces.store.base import IndexStore, MetaStore
from halospace.spaces.store.files import rmtree
from halospace.spaces.store.index import LocalIndexStore
from halospace.spaces.store.meta import LocalMetaStore, create_skeleton

TEMP_SPACE_NAME = "Halo"
TEMP_SPACE_ICON = "sparkles"

# Fixed for the life of the process; not bumped by preference writes.
_TEMP_CREATED_AT = utc_now()

Opener = Callable[[Path], object]


def launch_path(path: Path) -> object:
    """Open ``path`` in the OS file manager."""
    return click.launch(str(path))


class SpaceRepository:
    def __init__(
        self,
        settings: HaloSettings,
        *,
        index_store: IndexStore | None = None,
        meta_store: MetaStore | None = None,
        cache_size: int | None = None,
        id_factory: Callable[[], str] | None = None,
        opener: Opener | None = None,
    ) -> None:
        self.settings = settings
        self._meta = meta_store or LocalMetaStore()
        index_store = index_store or LocalIndexStore(settings.index_path, settings.spaces_dir, self._meta)
        self.registry = SpaceRegistry(index_store, self._meta)
        self.cache: LRUCache[str, Space] = LRUCache(cache_size or settings.space_cache_size)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._open = opener or launch_path

    # -- Lifecycle -------------------------------------------------------------

    def initialize(self) -> None:
        self.registry.initialize()

    def close(self) -> None:
        self.cache.clear()
        self.registry.close()

    def __enter__(self) -> SpaceRepository:
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Temp space ------------------------------------------------------------

    def get_temp_space(self) -> Space:
        """Materialize the temp space, with preferences from its meta.json if present."""
        temp_path = self.settings.temp_space_path
        preferences = None
        if self._meta.exists(temp_path):
            try:
                preferences = self._meta.read(temp_path).preferences
            except (SpaceError, OSError) as exc:
                logger.debug("Ignoring unreadable temp space meta: {}", exc)

        return Space(
            id=TEMP_SPACE_ID,
            name=TEMP_SPACE_NAME,
            icon=TEMP_SPACE_ICON,
            path=temp_path,
            is_temp=True,
            created_at=_TEMP_CREATED_AT,
            updated_at=_TEMP_CREATED_AT,
            preferences=preferences,
        )

    # -- Read ------------------------------------------------------------------

    def try_get_space(self, space_id: str) -> SpaceResult[Space]:
        if space_id == TEMP_SPACE_ID:
            return SpaceResult.success(self.get_temp_space())

        cached = self.cache.get(space_id)
        if cached is not None:
            return SpaceResult.success(cached)

        entry = self.registry.get(space_id)
        if entry is None:
            return SpaceResult.failure(SpaceErrorKind.NOT_FOUND, f"Space not found: {space_id}")

        try:
            meta = self._meta.read(entry.path)
        except (SpaceError, OSError) as exc:
            logger.error("Failed to read space meta for {}: {}", entry.path, exc)
            self.registry.delete(space_id)
            return SpaceResult.from_exception(exc)

        space = Space.from_meta(meta, entry.path)
        self.cache.put(space_id, space)
        return SpaceResult.success(space)

    def get_space(self, space_id: str) -> Space | None:
        return self.try_get_space(space_id).value

    def list_spaces(self) -> list[Space]:
        """All registered spaces, most recently updated first."""
        spaces = []
        dead = []
        for space_id, entry in self.registry.list():
            try:
                meta = self._meta.read(entry.path)
            except (SpaceError, OSError) as exc:
                logger.warning("Space {} at {} unreadable ({}), removing from index", space_id, entry.path, exc)
                dead.append(space_id)
                continue
            spaces.append(Space.from_meta(meta, entry.path))
        self.registry.discard(dead)

        spaces.sort(key=lambda s: s.updated_at, reverse=True)
        return spaces

    def get_all_space_paths(self) -> list[Path]:
        """Temp path (always) plus every registered root that still exists.

        This is the allow-list base consumed by ``PathAuthority``.
        """
        paths = [self.settings.temp_space_path]
        paths.extend(p for p in self.registry.paths() if p.exists())
        return paths

    def get_space_preferences(self, space_id: str) -> SpacePreferences | None:
        space = self.get_space(space_id)
        if space is None:
            return None
        if not self._meta.exists(space.path):
            return None
        try:
            return self._meta.read(space.path).preferences
        except (SpaceError, OSError) as exc:
            logger.error("Failed to get space preferences for {}: {}", space_id, exc)
            return None

    # -- Write -----------------------------------------------------------------

    def create_space(self, body: SpaceCreate) -> Space:
        """Create the skeleton and meta.json, then register the space.

        No collision check: two spaces created with the same name under the
        default directory share a root, and the later one's meta.json wins.
        """
        space_id = self._new_id()
        now = utc_now()
        root = Path(body.custom_path) if body.custom_path else self.settings.spaces_dir / body.name

        create_skeleton(root)
        meta = SpaceMeta(id=space_id, name=body.name, icon=body.icon, created_at=now, updated_at=now)
        self._meta.write(root, meta)

        self.registry.set(space_id, IndexEntry(path=root))
        logger.info("Created space {} ({}) at {}", space_id, body.name, root)
        return Space.from_meta(meta, root)

    def update_space(self, space_id: str, body: SpaceUpdate) -> Space | None:
        space = self.get_space(space_id)
        if space is None or space.is_temp:
            return None

        try:
            meta = self._meta.read(space.path)
            if body.name:
                meta.name = body.name
            if body.icon:
                meta.icon = body.icon
            meta.updated_at = utc_now()
            self._meta.write(space.path, meta)
        except (SpaceError, OSError) as exc:
            logger.error("Failed to update space {}: {}", space_id, exc)
            return None

        updated = Space.from_meta(meta, space.path)
        self.cache.put(space_id, updated)
        return updated

    def update_space_preferences(self, space_id: str, partial: SpacePreferences) -> Space | None:
        """Merge ``partial`` into the stored preferences.

        The merge is shallow at the ``layout`` key: fields missing from
        ``partial.layout`` (or set to ``None``) keep their stored values.
        Works for the temp space, whose meta.json is created on demand.
        """
        space = self.get_space(space_id)
        if space is None:
            return None

        try:
            if self._meta.exists(space.path):
                meta = self._meta.read(space.path)
            else:
                control_dir(space.path).mkdir(parents=True, exist_ok=True)
                meta = space.to_meta()

            meta.preferences = _merge_preferences(meta.preferences, partial)
            meta.updated_at = utc_now()
            self._meta.write(space.path, meta)
        except (SpaceError, OSError) as exc:
            logger.error("Failed to update space preferences for {}: {}", space_id, exc)
            return None

        logger.info("Updated preferences for {}: {}", space_id, partial.model_dump(by_alias=True, exclude_none=True))
        updated = Space.from_meta(meta, space.path, is_temp=space.is_temp)
        if not space.is_temp:
            self.cache.put(space_id, updated)
        return updated

    # -- Delete ----------------------------------------------------------------

    def try_delete_space(self, space_id: str) -> SpaceResult[bool]:
        if space_id == TEMP_SPACE_ID:
            return SpaceResult.failure(SpaceErrorKind.PERMISSION_DENIED, "The temp space cannot be deleted")

        found = self.try_get_space(space_id)
        if not found.ok:
            return SpaceResult(error=found.error, message=found.message)
        space = found.value

        try:
            if self.is_custom_path(space.path):
                # Adopted folder: remove only what the registry created.
                rmtree(control_dir(space.path))
            else:
                rmtree(space.path)
        except OSError as exc:
            logger.error("Failed to delete space {}: {}", space_id, exc)
            return SpaceResult.from_exception(exc)

        self.cache.pop(space_id)
        self.registry.delete(space_id)
        logger.info("Deleted space {} at {}", space_id, space.path)
        return SpaceResult.success(True)

    def delete_space(self, space_id: str) -> bool:
        return self.try_delete_space(space_id).ok

    def is_custom_path(self, root: Path) -> bool:
        """True unless ``root`` lies strictly below the default spaces directory.

        A root equal to the spaces directory itself counts as custom, so
        deleting it never removes sibling spaces.
        """
        spaces_dir = self.settings.spaces_dir.resolve()
        resolved = Path(root).resolve()
        return resolved == spaces_dir or not resolved.is_relative_to(spaces_dir)

    # -- Shell -----------------------------------------------------------------

    def open_space_folder(self, space_id: str) -> bool:
        space = self.get_space(space_id)
        if space is None:
            return False

        target = space.path
        if space.is_temp:
            target = space.path / "artifacts"
            if not target.exists():
                return False

        try:
            self._open(target)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to open {}: {}", target, exc)
            return False
        return True


def _merge_preferences(current: SpacePreferences | None, partial: SpacePreferences) -> SpacePreferences:
    merged = current.model_copy(deep=True) if current else SpacePreferences()
    if partial.layout is not None:
        existing = merged.layout.model_dump(by_alias=True, exclude_none=True) if merged.layout else {}
        changes = partial.layout.model_dump(by_alias=True, exclude_none=True)
        merged.layout = SpaceLayoutPreferences.model_validate({**existing, **changes})
    return merged
