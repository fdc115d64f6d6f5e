"""Skill file storage.

Skills are Markdown files with an optional frontmatter block::

    ---
    description: Summarize a pull request
    ---
    <prompt body>

They live either in the global skills dir (``{data_root}/skills``) or in a
space's ``{root}/.halo/skills``.  Every write and delete goes through
``PathAuthority`` so only registered locations can be touched.
"""

from __future__ import annotations

import re
from enum import StrEnum
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from halospace.spaces.authority import PathAuthority, space_skills_dir
from halospace.spaces.errors import InvalidSkillNameError, SkillPathError
from halospace.spaces.settings import HaloSettings
from halospace.spaces.store.files import read_file

_DESCRIPTION_RE = re.compile(r"^description:\s*(.+)$", re.MULTILINE)


class SkillSource(StrEnum):
    GLOBAL = "global"
    SPACE = "space"


class SkillDef(BaseModel):
    name: str
    description: str = ""
    content: str
    source: SkillSource
    file_path: Path


def parse_skill_file(path: Path, source: SkillSource) -> SkillDef | None:
    """Parse one skill file.  Returns ``None`` if it cannot be read."""
    try:
        raw = read_file(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable skill {}: {}", path, exc)
        return None

    description = ""
    content = raw
    if raw.startswith("---"):
        end = raw.find("---", 3)
        if end > 0:
            match = _DESCRIPTION_RE.search(raw[3:end])
            if match:
                description = match.group(1).strip()
            content = raw[end + 3 :].strip()

    return SkillDef(name=path.stem, description=description, content=content, source=source, file_path=path)


def _scan_dir(directory: Path, source: SkillSource) -> list[SkillDef]:
    if not directory.is_dir():
        return []
    try:
        files = sorted(p for p in directory.iterdir() if p.suffix == ".md")
    except OSError as exc:
        logger.warning("Cannot list skills in {}: {}", directory, exc)
        return []
    return [skill for f in files if (skill := parse_skill_file(f, source)) is not None]


def list_skills(settings: HaloSettings, space_dir: str | Path | None = None) -> list[SkillDef]:
    """Global skills, followed by the skills of ``space_dir`` when given."""
    skills = _scan_dir(settings.global_skills_dir, SkillSource.GLOBAL)
    if space_dir:
        skills.extend(_scan_dir(space_skills_dir(space_dir), SkillSource.SPACE))
    return skills


def sanitize_name(name: str) -> str:
    """Reduce ``name`` to a safe file stem (no separators, no traversal)."""
    base = re.split(r"[\\/]", name)[-1]
    base = re.sub(r"[^a-zA-Z0-9_-]", "-", base)
    base = re.sub(r"-+", "-", base)
    return base.strip("-")


class SkillStore:
    def __init__(self, authority: PathAuthority, settings: HaloSettings) -> None:
        self._authority = authority
        self._settings = settings

    def list(self, space_dir: str | Path | None = None) -> list[SkillDef]:
        return list_skills(self._settings, space_dir)

    def save(
        self,
        name: str,
        content: str,
        scope: SkillSource = SkillSource.GLOBAL,
        space_dir: str | Path | None = None,
    ) -> Path:
        """Write ``<dir>/<name>.md``.  Returns the written path.

        Raises ``InvalidSkillNameError`` for an empty name and
        ``SkillPathError`` if ``space_dir`` is not a registered space.
        """
        safe_name = sanitize_name(name)
        if not safe_name:
            raise InvalidSkillNameError(name)

        if scope == SkillSource.GLOBAL:
            directory = self._authority.global_skills_dir
        else:
            directory = self._authority.resolve_space_skills_dir(space_dir)
            if directory is None:
                msg = f"Space directory is not registered: {space_dir}"
                raise SkillPathError(msg)

        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"{safe_name}.md"
        if not self._authority.is_allowed_skills_path(target):
            msg = f"Invalid skill path: {target}"
            raise SkillPathError(msg)

        target.write_text(content, encoding="utf-8")
        logger.info("Saved {} skill {} to {}", scope, safe_name, target)
        return target

    def delete(self, file_path: str | Path) -> None:
        """Delete a skill file.  No-op if it does not exist.

        Raises ``SkillPathError`` if the file (or its directory) is outside
        every allowed skills dir.
        """
        if not self._authority.is_allowed_skills_path(file_path):
            msg = f"Cannot delete files outside skills directories: {file_path}"
            raise SkillPathError(msg)

        resolved = Path(file_path).resolve()
        if not self._authority.is_allowed_skills_path(resolved.parent):
            msg = f"Invalid target directory: {resolved.parent}"
            raise SkillPathError(msg)

        resolved.unlink(missing_ok=True)
        logger.info("Deleted skill {}", resolved)
