"""Input schemas for repository operations.

- **Create** schemas validate user input and provide defaults.
- **Update** schemas allow partial updates; unset or empty fields are ignored.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field

from halospace.spaces.models.space import CamelModel


class SpaceCreate(CamelModel):
    """Input for creating a new space."""

    name: str = Field(min_length=1)
    icon: str
    custom_path: Path | None = Field(
        default=None,
        description="Adopt an existing folder; defaults to <spaces_dir>/<name>.",
    )


class SpaceUpdate(CamelModel):
    """Partial update of the user-visible fields."""

    name: str | None = None
    icon: str | None = None
