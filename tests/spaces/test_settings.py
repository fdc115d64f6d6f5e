"""Unit tests for HaloSettings path derivation."""

from __future__ import annotations

from pathlib import Path

from halospace.spaces.settings import HaloSettings, _get_settings_cached, get_settings


def test_derived_paths(tmp_path) -> None:
    settings = HaloSettings(data_dir=str(tmp_path))

    assert settings.index_path == tmp_path / "spaces-index.json"
    assert settings.temp_space_path == tmp_path / "temp"
    assert settings.spaces_dir == tmp_path / "spaces"
    assert settings.global_skills_dir == tmp_path / "skills"


def test_tilde_is_expanded() -> None:
    settings = HaloSettings(data_dir="~/halo-data")
    assert settings.data_root == Path.home() / "halo-data"


def test_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HALO_DATA_DIR", str(tmp_path / "from-env"))
    monkeypatch.setenv("HALO_SPACE_CACHE_SIZE", "4")
    _get_settings_cached.cache_clear()
    try:
        settings = get_settings()
        assert settings.data_root == tmp_path / "from-env"
        assert settings.space_cache_size == 4
        assert get_settings() is settings
    finally:
        _get_settings_cached.cache_clear()


def test_ensure_directories(tmp_path) -> None:
    settings = HaloSettings(data_dir=str(tmp_path / "root"))
    settings.ensure_directories()

    for path in (settings.spaces_dir, settings.temp_space_path / "artifacts", settings.temp_space_path / "conversations"):
        assert path.is_dir()
