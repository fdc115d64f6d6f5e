"""Local filesystem metadata store.

Layout::

    {root}/.halo/meta.json
    {root}/.halo/conversations/

``meta.json`` is authoritative for name, icon, timestamps and preferences.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from halospace.spaces.errors import MetaCorruptError, MetaNotFoundError
from halospace.spaces.models.space import SpaceMeta, control_dir, meta_path
from halospace.spaces.store.files import atomic_write, read_file


class LocalMetaStore:
    """Filesystem implementation of the MetaStore protocol."""

    def exists(self, root: Path) -> bool:
        return meta_path(root).is_file()

    def read(self, root: Path) -> SpaceMeta:
        path = meta_path(root)
        try:
            raw = read_file(path)
        except FileNotFoundError:
            raise MetaNotFoundError(str(path)) from None
        except UnicodeDecodeError as exc:
            raise MetaCorruptError(f"{path}: {exc}") from None
        try:
            return SpaceMeta.model_validate_json(raw)
        except ValidationError as exc:
            raise MetaCorruptError(f"{path}: {exc.error_count()} validation error(s)") from exc

    def write(self, root: Path, meta: SpaceMeta) -> None:
        data = meta.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        atomic_write(meta_path(root), data)


def create_skeleton(root: Path) -> None:
    """Create ``{root}/.halo/conversations/`` (idempotent)."""
    (control_dir(root) / "conversations").mkdir(parents=True, exist_ok=True)
