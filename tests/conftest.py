"""Shared test fixtures.

Everything runs against a throwaway data root under ``tmp_path``: no
network, no Docker, nothing outside the temporary directory.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from halospace.spaces.models.space import SpaceMeta, meta_path
from halospace.spaces.repository import SpaceRepository
from halospace.spaces.settings import HaloSettings
from halospace.spaces.store.meta import LocalMetaStore


class CountingMetaStore(LocalMetaStore):
    """LocalMetaStore that counts ``read`` calls."""

    def __init__(self) -> None:
        self.reads = 0

    def read(self, root: Path) -> SpaceMeta:
        self.reads += 1
        return super().read(root)


class RecordingOpener:
    def __init__(self) -> None:
        self.opened: list[Path] = []

    def __call__(self, path: Path) -> None:
        self.opened.append(path)


@pytest.fixture
def settings(tmp_path: Path) -> HaloSettings:
    s = HaloSettings(data_dir=str(tmp_path / "halo"))
    s.ensure_directories()
    return s


@pytest.fixture
def meta_store() -> CountingMetaStore:
    return CountingMetaStore()


@pytest.fixture
def opener() -> RecordingOpener:
    return RecordingOpener()


@pytest.fixture
def repo(settings: HaloSettings, meta_store: CountingMetaStore, opener: RecordingOpener) -> SpaceRepository:
    repository = SpaceRepository(settings, meta_store=meta_store, opener=opener)
    repository.initialize()
    return repository


@pytest.fixture
def make_space_dir() -> Callable[..., Path]:
    """Write a ``.halo/meta.json`` under ``root`` without going through the repository."""

    def _make(root: Path, space_id: str, name: str = "Space", updated_at: datetime | None = None) -> Path:
        stamp = updated_at or datetime(2024, 1, 1, tzinfo=UTC)
        meta_file = meta_path(root)
        meta_file.parent.mkdir(parents=True, exist_ok=True)
        meta_file.write_text(
            json.dumps({
                "id": space_id,
                "name": name,
                "icon": "folder",
                "createdAt": stamp.isoformat(),
                "updatedAt": stamp.isoformat(),
            }),
            encoding="utf-8",
        )
        return root

    return _make


@pytest.fixture
def read_index(settings: HaloSettings) -> Callable[[], dict]:
    """Decode the index file as currently on disk."""
    return lambda: json.loads(settings.index_path.read_text(encoding="utf-8"))
