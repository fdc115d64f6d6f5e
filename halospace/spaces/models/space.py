"""Space data model.

A space is a named workspace bound to a filesystem root.  Its mutable fields
live in ``<root>/.halo/meta.json`` (``SpaceMeta``); the registry only knows
the id -> root mapping.  ``Space`` is the materialized view handed to callers.

On disk every key is camelCase (``createdAt``, ``artifactRailExpanded``);
attributes are snake_case.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

TEMP_SPACE_ID = "halo-temp"
"""Id of the singleton ephemeral space.  It never has a registry entry."""

CONTROL_DIRNAME = ".halo"
META_FILENAME = "meta.json"


def utc_now() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SpaceLayoutPreferences(CamelModel):
    """UI layout state.  Unknown keys written by newer clients are preserved."""

    model_config = ConfigDict(extra="allow")

    artifact_rail_expanded: bool | None = None
    chat_width: int | float | None = None


class SpacePreferences(CamelModel):
    model_config = ConfigDict(extra="allow")

    layout: SpaceLayoutPreferences | None = None


class SpaceMeta(CamelModel):
    """Contents of ``<root>/.halo/meta.json``.

    Top-level keys this model does not know about are kept on rewrite.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    icon: str
    created_at: datetime
    updated_at: datetime
    preferences: SpacePreferences | None = None


class Space(CamelModel):
    """A fully materialized space."""

    id: str
    name: str
    icon: str
    path: Path
    is_temp: bool = False
    created_at: datetime
    updated_at: datetime
    preferences: SpacePreferences | None = None

    @classmethod
    def from_meta(cls, meta: SpaceMeta, path: Path, *, is_temp: bool = False) -> Space:
        return cls(
            id=meta.id,
            name=meta.name,
            icon=meta.icon,
            path=path,
            is_temp=is_temp,
            created_at=meta.created_at,
            updated_at=meta.updated_at,
            preferences=meta.preferences,
        )

    def to_meta(self) -> SpaceMeta:
        return SpaceMeta(
            id=self.id,
            name=self.name,
            icon=self.icon,
            created_at=self.created_at,
            updated_at=self.updated_at,
            preferences=self.preferences,
        )


def control_dir(root: Path) -> Path:
    """``<root>/.halo``: everything the registry owns inside a space."""
    return Path(root) / CONTROL_DIRNAME


def meta_path(root: Path) -> Path:
    return control_dir(root) / META_FILENAME
