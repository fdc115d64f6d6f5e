"""Unit tests for SpaceRepository.

No database or Docker required -- every test gets its own data root.
"""

from __future__ import annotations

import json
import shutil
from datetime import UTC, datetime

from halospace.spaces.errors import SpaceErrorKind
from halospace.spaces.models.api import SpaceCreate, SpaceUpdate
from halospace.spaces.models.space import (
    TEMP_SPACE_ID,
    SpaceLayoutPreferences,
    SpacePreferences,
    meta_path,
)
from halospace.spaces.repository import SpaceRepository


def _layout(**kwargs) -> SpacePreferences:
    return SpacePreferences(layout=SpaceLayoutPreferences(**kwargs))


# -- Create / get ---------------------------------------------------------------


def test_create_and_get_roundtrip(repo: SpaceRepository, settings) -> None:
    created = repo.create_space(SpaceCreate(name="Demo", icon="rocket"))

    assert created.path == settings.spaces_dir / "Demo"
    assert (created.path / ".halo" / "conversations").is_dir()
    assert meta_path(created.path).is_file()

    fetched = repo.get_space(created.id)
    assert fetched is not None
    assert fetched.name == "Demo"
    assert fetched.icon == "rocket"
    assert fetched.path == created.path
    assert fetched.is_temp is False
    assert fetched.preferences is None


def test_meta_json_uses_camel_case(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="Demo", icon="rocket"))

    raw = json.loads(meta_path(created.path).read_text())
    assert set(raw) == {"id", "name", "icon", "createdAt", "updatedAt"}
    assert raw["id"] == created.id


def test_create_with_custom_path(repo: SpaceRepository, tmp_path, read_index) -> None:
    target = tmp_path / "projects" / "website"
    target.mkdir(parents=True)
    (target / "index.html").write_text("<html/>")

    created = repo.create_space(SpaceCreate(name="Website", icon="globe", custom_path=target))

    assert created.path == target
    assert (target / "index.html").exists()
    assert read_index()["spaces"][created.id] == {"path": str(target)}


def test_create_uses_injected_id_factory(settings, meta_store) -> None:
    repo = SpaceRepository(settings, meta_store=meta_store, id_factory=lambda: "fixed-id")
    assert repo.create_space(SpaceCreate(name="A", icon="a")).id == "fixed-id"


def test_create_same_name_is_not_deduplicated(repo: SpaceRepository) -> None:
    first = repo.create_space(SpaceCreate(name="Twin", icon="a"))
    second = repo.create_space(SpaceCreate(name="Twin", icon="b"))

    assert first.id != second.id
    assert first.path == second.path


def test_get_unknown_space(repo: SpaceRepository) -> None:
    assert repo.get_space("nope") is None
    result = repo.try_get_space("nope")
    assert result.ok is False
    assert result.error == SpaceErrorKind.NOT_FOUND


def test_get_corrupt_meta_prunes_entry(repo: SpaceRepository, read_index) -> None:
    created = repo.create_space(SpaceCreate(name="Broken", icon="x"))
    meta_path(created.path).write_text("{ nope")

    result = repo.try_get_space(created.id)
    assert result.error == SpaceErrorKind.CORRUPT
    assert created.id not in read_index()["spaces"]

    assert repo.try_get_space(created.id).error == SpaceErrorKind.NOT_FOUND


def test_get_uses_cache(repo: SpaceRepository, meta_store) -> None:
    created = repo.create_space(SpaceCreate(name="Cached", icon="x"))
    meta_store.reads = 0

    repo.get_space(created.id)
    repo.get_space(created.id)

    assert meta_store.reads == 1


def test_lru_bound(repo: SpaceRepository, meta_store) -> None:
    ids = [repo.create_space(SpaceCreate(name=f"s{i}", icon="x")).id for i in range(11)]
    for space_id in ids:
        repo.get_space(space_id)
    assert len(repo.cache) == 10

    # The ten most recent ids are served from the cache ...
    meta_store.reads = 0
    for space_id in ids[1:]:
        assert repo.get_space(space_id) is not None
    assert meta_store.reads == 0

    # ... while the least recently touched one was evicted.
    assert repo.get_space(ids[0]) is not None
    assert meta_store.reads == 1


def test_cache_size_from_settings(settings, meta_store) -> None:
    settings.space_cache_size = 3
    repo = SpaceRepository(settings, meta_store=meta_store)
    assert repo.cache.capacity == 3


# -- List -----------------------------------------------------------------------


def test_list_sorted_by_updated_at(repo: SpaceRepository, settings, make_space_dir) -> None:
    old = make_space_dir(settings.spaces_dir / "old", "id-old", updated_at=datetime(2023, 1, 1, tzinfo=UTC))
    new = make_space_dir(settings.spaces_dir / "new", "id-new", updated_at=datetime(2025, 1, 1, tzinfo=UTC))
    # Fresh repository: the default dir is picked up by the migration scan.
    settings.index_path.unlink()
    repo.close()

    spaces = repo.list_spaces()

    assert [s.id for s in spaces] == ["id-new", "id-old"]
    assert [s.path for s in spaces] == [new, old]


def test_list_does_not_populate_cache(repo: SpaceRepository) -> None:
    repo.create_space(SpaceCreate(name="A", icon="a"))
    repo.list_spaces()
    assert len(repo.cache) == 0


def test_list_self_heals(repo: SpaceRepository, read_index) -> None:
    keep = repo.create_space(SpaceCreate(name="Keep", icon="a"))
    gone = repo.create_space(SpaceCreate(name="Gone", icon="b"))
    corrupt = repo.create_space(SpaceCreate(name="Corrupt", icon="c"))
    shutil.rmtree(gone.path)
    meta_path(corrupt.path).write_text("[]")

    assert [s.id for s in repo.list_spaces()] == [keep.id]
    assert set(read_index()["spaces"]) == {keep.id}


# -- Update ---------------------------------------------------------------------


def test_update_space(repo: SpaceRepository, meta_store) -> None:
    created = repo.create_space(SpaceCreate(name="Before", icon="a"))

    updated = repo.update_space(created.id, SpaceUpdate(name="After"))

    assert updated is not None
    assert updated.name == "After"
    assert updated.icon == "a"
    assert updated.updated_at >= created.updated_at
    assert json.loads(meta_path(created.path).read_text())["name"] == "After"

    # The cache holds the updated object: no re-read needed.
    meta_store.reads = 0
    assert repo.get_space(created.id).name == "After"
    assert meta_store.reads == 0


def test_update_ignores_empty_fields(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="Keep", icon="a"))
    updated = repo.update_space(created.id, SpaceUpdate(name="", icon="b"))
    assert updated.name == "Keep"
    assert updated.icon == "b"


def test_update_unknown_space(repo: SpaceRepository) -> None:
    assert repo.update_space("nope", SpaceUpdate(name="x")) is None


def test_updates_keep_unknown_meta_keys(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="Extra", icon="x"))
    path = meta_path(created.path)
    raw = json.loads(path.read_text())
    raw["pinned"] = True
    path.write_text(json.dumps(raw))

    repo.update_space(created.id, SpaceUpdate(name="Renamed"))
    repo.update_space_preferences(created.id, _layout(chat_width=300))

    stored = json.loads(path.read_text())
    assert stored["pinned"] is True
    assert stored["name"] == "Renamed"
    assert stored["preferences"] == {"layout": {"chatWidth": 300}}


def test_fractional_chat_width_is_readable(repo: SpaceRepository, read_index) -> None:
    """Widths dragged in the UI are stored unrounded."""
    created = repo.create_space(SpaceCreate(name="Dragged", icon="x"))
    path = meta_path(created.path)
    raw = json.loads(path.read_text())
    raw["preferences"] = {"layout": {"chatWidth": 412.5}}
    path.write_text(json.dumps(raw))
    repo.cache.clear()

    space = repo.get_space(created.id)

    assert space is not None
    assert space.preferences.layout.chat_width == 412.5
    assert created.id in read_index()["spaces"]
    assert [s.id for s in repo.list_spaces()] == [created.id]


def test_preferences_shallow_merge(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="P", icon="a"))
    repo.update_space_preferences(created.id, _layout(artifact_rail_expanded=True, chat_width=300))

    updated = repo.update_space_preferences(created.id, _layout(chat_width=500))

    assert updated.preferences.layout.artifact_rail_expanded is True
    assert updated.preferences.layout.chat_width == 500
    stored = json.loads(meta_path(created.path).read_text())["preferences"]
    assert stored == {"layout": {"artifactRailExpanded": True, "chatWidth": 500}}


def test_preferences_none_field_has_no_effect(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="P", icon="a"))
    repo.update_space_preferences(created.id, _layout(chat_width=300))

    updated = repo.update_space_preferences(created.id, _layout(chat_width=None, artifact_rail_expanded=False))

    assert updated.preferences.layout.chat_width == 300
    assert updated.preferences.layout.artifact_rail_expanded is False


def test_preferences_without_layout_keeps_existing(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="P", icon="a"))
    repo.update_space_preferences(created.id, _layout(chat_width=300))

    updated = repo.update_space_preferences(created.id, SpacePreferences())

    assert updated.preferences.layout.chat_width == 300


def test_preferences_refresh_cache(repo: SpaceRepository, meta_store) -> None:
    created = repo.create_space(SpaceCreate(name="P", icon="a"))
    repo.get_space(created.id)

    repo.update_space_preferences(created.id, _layout(chat_width=640))

    meta_store.reads = 0
    assert repo.get_space(created.id).preferences.layout.chat_width == 640
    assert meta_store.reads == 0
    assert repo.get_space_preferences(created.id).layout.chat_width == 640


def test_get_space_preferences_none(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="P", icon="a"))
    assert repo.get_space_preferences(created.id) is None
    assert repo.get_space_preferences("nope") is None


# -- Temp space -----------------------------------------------------------------


def test_temp_space_always_available(repo: SpaceRepository, settings) -> None:
    shutil.rmtree(settings.temp_space_path)

    space = repo.get_space(TEMP_SPACE_ID)

    assert space is not None
    assert space.is_temp is True
    assert space.name == "Halo"
    assert space.icon == "sparkles"
    assert space.path == settings.temp_space_path
    assert space.preferences is None


def test_temp_space_timestamps_are_stable(repo: SpaceRepository) -> None:
    first = repo.get_temp_space()
    second = repo.get_temp_space()
    assert first.created_at == second.created_at
    assert first.updated_at == second.updated_at


def test_temp_space_guards(repo: SpaceRepository, settings) -> None:
    assert repo.delete_space(TEMP_SPACE_ID) is False
    assert repo.try_delete_space(TEMP_SPACE_ID).error == SpaceErrorKind.PERMISSION_DENIED
    assert repo.update_space(TEMP_SPACE_ID, SpaceUpdate(name="x")) is None

    updated = repo.update_space_preferences(TEMP_SPACE_ID, _layout(chat_width=420))
    assert updated is not None
    assert updated.is_temp is True
    assert meta_path(settings.temp_space_path).is_file()

    assert repo.get_space(TEMP_SPACE_ID).preferences.layout.chat_width == 420
    assert TEMP_SPACE_ID not in repo.cache


# -- Delete ---------------------------------------------------------------------


def test_delete_default_space_removes_directory(repo: SpaceRepository, read_index) -> None:
    created = repo.create_space(SpaceCreate(name="Doomed", icon="x"))
    repo.get_space(created.id)

    assert repo.delete_space(created.id) is True

    assert not created.path.exists()
    assert created.id not in repo.cache
    assert created.id not in read_index()["spaces"]
    assert repo.get_space(created.id) is None


def test_delete_custom_space_preserves_user_files(repo: SpaceRepository, tmp_path) -> None:
    target = tmp_path / "adopted"
    target.mkdir()
    (target / "notes.txt").write_text("keep me")
    created = repo.create_space(SpaceCreate(name="Adopted", icon="x", custom_path=target))

    assert repo.delete_space(created.id) is True

    assert not (target / ".halo").exists()
    assert (target / "notes.txt").read_text() == "keep me"


def test_delete_space_at_spaces_dir_spares_siblings(repo: SpaceRepository, settings) -> None:
    other = repo.create_space(SpaceCreate(name="Other", icon="x"))
    dot = repo.create_space(SpaceCreate(name=".", icon="x"))
    assert repo.is_custom_path(dot.path) is True

    assert repo.delete_space(dot.id) is True

    assert settings.spaces_dir.is_dir()
    assert not (settings.spaces_dir / ".halo").exists()
    assert repo.get_space(other.id) is not None
    assert other.path.is_dir()


def test_delete_custom_path_equal_to_spaces_dir(repo: SpaceRepository, settings) -> None:
    other = repo.create_space(SpaceCreate(name="Other", icon="x"))
    adopted = repo.create_space(SpaceCreate(name="Whole", icon="x", custom_path=settings.spaces_dir))

    assert repo.delete_space(adopted.id) is True

    assert repo.get_space(other.id) is not None


def test_delete_unknown_space(repo: SpaceRepository) -> None:
    assert repo.delete_space("nope") is False
    assert repo.try_delete_space("nope").error == SpaceErrorKind.NOT_FOUND


def test_delete_failure_leaves_state_untouched(repo: SpaceRepository, monkeypatch, read_index) -> None:
    created = repo.create_space(SpaceCreate(name="Locked", icon="x"))

    def _refuse(path):
        raise PermissionError(f"in use: {path}")

    monkeypatch.setattr("halospace.spaces.repository.rmtree", _refuse)

    result = repo.try_delete_space(created.id)
    assert result.error == SpaceErrorKind.PERMISSION_DENIED
    assert repo.delete_space(created.id) is False
    assert created.id in repo.registry
    assert created.id in read_index()["spaces"]
    assert repo.get_space(created.id) is not None


def test_is_custom_path(repo: SpaceRepository, settings, tmp_path) -> None:
    assert repo.is_custom_path(settings.spaces_dir / "x") is False
    assert repo.is_custom_path(tmp_path / "elsewhere") is True
    # A sibling sharing the prefix is not inside the spaces dir.
    assert repo.is_custom_path(settings.data_root / "spaces-old" / "x") is True
    # The spaces dir itself is never treated as a deletable default root.
    assert repo.is_custom_path(settings.spaces_dir) is True
    assert repo.is_custom_path(settings.spaces_dir / ".") is True


# -- Paths / open ---------------------------------------------------------------


def test_end_to_end_paths(repo: SpaceRepository, settings) -> None:
    created = repo.create_space(SpaceCreate(name="Demo", icon="rocket"))

    paths = repo.get_all_space_paths()
    assert paths[0] == settings.temp_space_path
    assert created.path in paths

    assert repo.delete_space(created.id) is True
    assert created.path not in repo.get_all_space_paths()


def test_paths_include_temp_even_if_missing(repo: SpaceRepository, settings) -> None:
    shutil.rmtree(settings.temp_space_path)
    assert repo.get_all_space_paths() == [settings.temp_space_path]


def test_paths_skip_vanished_roots(repo: SpaceRepository) -> None:
    created = repo.create_space(SpaceCreate(name="Vanish", icon="x"))
    shutil.rmtree(created.path)
    assert created.path not in repo.get_all_space_paths()


def test_open_space_folder(repo: SpaceRepository, opener) -> None:
    created = repo.create_space(SpaceCreate(name="Open", icon="x"))

    assert repo.open_space_folder(created.id) is True
    assert opener.opened == [created.path]
    assert repo.open_space_folder("nope") is False


def test_open_temp_space_opens_artifacts(repo: SpaceRepository, settings, opener) -> None:
    assert repo.open_space_folder(TEMP_SPACE_ID) is True
    assert opener.opened == [settings.temp_space_path / "artifacts"]

    shutil.rmtree(settings.temp_space_path / "artifacts")
    assert repo.open_space_folder(TEMP_SPACE_ID) is False


def test_open_failure_returns_false(settings, meta_store) -> None:
    def _broken(path):
        raise OSError("no file manager")

    repo = SpaceRepository(settings, meta_store=meta_store, opener=_broken)
    created = repo.create_space(SpaceCreate(name="Open", icon="x"))
    assert repo.open_space_folder(created.id) is False


# -- Lifecycle ------------------------------------------------------------------


def test_context_manager_and_reload(settings, meta_store) -> None:
    with SpaceRepository(settings, meta_store=meta_store) as repo:
        created = repo.create_space(SpaceCreate(name="Persisted", icon="x"))

    with SpaceRepository(settings, meta_store=meta_store) as again:
        assert again.get_space(created.id).name == "Persisted"
