"""On-disk shapes of ``spaces-index.json``.

Two versions exist:

- **v2** (current): ``{"version": 2, "spaces": {"<id>": {"path": "<abs>"}}}``
- **v1** (legacy): ``{"customPaths": ["<abs>", ...]}``.  Spaces under the
  default directory were not recorded at all and are found by scanning.

``parse_index`` treats the two as a tagged union.  A document that matches
neither shape (or fails validation) is reported as ``None`` and is never
partially trusted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from halospace.spaces.models.space import CamelModel


class IndexEntry(BaseModel):
    path: Path


class SpaceIndexV2(BaseModel):
    version: Literal[2] = 2
    spaces: dict[str, IndexEntry] = Field(default_factory=dict)


class SpaceIndexV1(CamelModel):
    custom_paths: list[str] = Field(default_factory=list)


def parse_index(raw: Any) -> SpaceIndexV2 | SpaceIndexV1 | None:
    """Classify a decoded index document.

    Dispatches on the ``version`` tag first, then on the presence of
    ``customPaths``; anything else returns ``None``.
    """
    if not isinstance(raw, dict):
        return None
    try:
        if "version" in raw:
            return SpaceIndexV2.model_validate(raw) if raw["version"] == 2 else None
        if "customPaths" in raw:
            return SpaceIndexV1.model_validate(raw)
    except ValidationError:
        return None
    return None
