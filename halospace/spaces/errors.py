"""Domain exceptions and the result type returned by ``try_*`` operations.

Stores raise; the repository catches at its boundary and reports either a
nullable value / boolean (the plain API) or a ``SpaceResult`` carrying a
``SpaceErrorKind`` (the ``try_*`` API) so callers can tell "not found" apart
from a transient I/O failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class SpaceError(Exception):
    """Base class for space registry errors."""


class MetaNotFoundError(SpaceError, LookupError):
    """Raised when ``<root>/.halo/meta.json`` does not exist."""


class MetaCorruptError(SpaceError, ValueError):
    """Raised when ``meta.json`` exists but cannot be parsed or validated."""


class SkillPathError(SpaceError, PermissionError):
    """Raised when a skill file operation targets a path outside the allow-list."""


class InvalidSkillNameError(SpaceError, ValueError):
    """Raised when a skill name is empty after sanitizing."""


class SpaceErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"
    IO_ERROR = "io_error"
    PERMISSION_DENIED = "permission_denied"


def classify_error(exc: BaseException) -> SpaceErrorKind:
    """Map an exception raised by a store to a ``SpaceErrorKind``."""
    if isinstance(exc, (MetaNotFoundError, FileNotFoundError)):
        return SpaceErrorKind.NOT_FOUND
    if isinstance(exc, MetaCorruptError):
        return SpaceErrorKind.CORRUPT
    if isinstance(exc, PermissionError):
        return SpaceErrorKind.PERMISSION_DENIED
    return SpaceErrorKind.IO_ERROR


@dataclass(frozen=True)
class SpaceResult(Generic[T]):
    """Either a value or an error kind with a human-readable message."""

    value: T | None = None
    error: SpaceErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> SpaceResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: SpaceErrorKind, message: str | None = None) -> SpaceResult[T]:
        return cls(error=error, message=message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> SpaceResult[T]:
        return cls(error=classify_error(exc), message=str(exc))
