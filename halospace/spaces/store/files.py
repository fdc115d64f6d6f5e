"""Filesystem helpers shared by the index and metadata stores."""

from __future__ import annotations

import contextlib
import os
import shutil
from pathlib import Path


def tmp_sibling(path: Path) -> Path:
    """``foo.json`` -> ``foo.json.tmp`` in the same directory."""
    return path.with_name(path.name + ".tmp")


def atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp sibling + rename.

    Ensures readers never see a partially-written file.  The temp file lives
    in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = tmp_sibling(path)
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def read_file(path: Path) -> str:
    """Read file contents.  Raises ``FileNotFoundError`` if missing."""
    return path.read_text(encoding="utf-8")


def rmtree(path: Path) -> None:
    """Remove directory tree.  No-op if path doesn't exist."""
    if path.exists():
        shutil.rmtree(path)
