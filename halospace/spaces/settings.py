"""Service configuration loaded from HALO_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

INDEX_FILENAME = "spaces-index.json"


class HaloSettings(BaseSettings):
    """Space registry settings.

    All fields are read from environment variables with the ``HALO_`` prefix.
    For example, ``HALO_DATA_DIR=~/halo-data`` maps to ``data_dir``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HALO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Data storage ----------------------------------------------------------
    data_dir: str = "~/.halo"
    """Root directory for all managed data (index, temp space, default spaces).

    A leading ``~`` is expanded, since shells do not expand it inside env vars.
    """

    # -- Cache -----------------------------------------------------------------
    space_cache_size: int = 10
    """Maximum number of materialized spaces kept in the LRU cache."""

    # -- Derived paths ---------------------------------------------------------

    @property
    def data_root(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def index_path(self) -> Path:
        return self.data_root / INDEX_FILENAME

    @property
    def temp_space_path(self) -> Path:
        return self.data_root / "temp"

    @property
    def spaces_dir(self) -> Path:
        """Default parent directory for spaces created without a custom path."""
        return self.data_root / "spaces"

    @property
    def global_skills_dir(self) -> Path:
        return self.data_root / "skills"

    def ensure_directories(self) -> None:
        """Create the data root, temp space skeleton and spaces dir (idempotent)."""
        temp = self.temp_space_path
        for path in (self.data_root, temp, self.spaces_dir, temp / "artifacts", temp / "conversations"):
            path.mkdir(parents=True, exist_ok=True)


def get_settings() -> HaloSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> HaloSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return HaloSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
