"""Data models for the space registry."""

from halospace.spaces.models.api import SpaceCreate, SpaceUpdate
from halospace.spaces.models.index import IndexEntry, SpaceIndexV1, SpaceIndexV2, parse_index
from halospace.spaces.models.space import (
    TEMP_SPACE_ID,
    Space,
    SpaceLayoutPreferences,
    SpaceMeta,
    SpacePreferences,
    control_dir,
    meta_path,
    utc_now,
)

__all__ = [
    "TEMP_SPACE_ID",
    # Index
    "IndexEntry",
    # Space
    "Space",
    # API schemas
    "SpaceCreate",
    "SpaceIndexV1",
    "SpaceIndexV2",
    "SpaceLayoutPreferences",
    "SpaceMeta",
    "SpacePreferences",
    "SpaceUpdate",
    "control_dir",
    "meta_path",
    "parse_index",
    "utc_now",
]
