"""Path authorization derived from the space registry.

Features that write outside a space's obvious root (skill files under
``{root}/.halo/skills``, artifact reads) must confine themselves to
directories the registry vouches for.  The allow-list is rebuilt from
``SpaceRepository.get_all_space_paths()`` on every check, so a deleted
space stops being writable immediately.

Containment is checked on resolved paths: symlinks and ``..`` segments are
collapsed first, then the candidate must equal or descend from an allowed
directory.
"""

from __future__ import annotations

import os
from pathlib import Path

from halospace.spaces.models.space import control_dir
from halospace.spaces.repository import SpaceRepository
from halospace.spaces.settings import HaloSettings


def is_inside_dir(path: str | Path, directory: str | Path) -> bool:
    """True if ``path`` resolves to ``directory`` or something beneath it."""
    return Path(path).resolve().is_relative_to(Path(directory).resolve())


def space_skills_dir(root: str | Path) -> Path:
    return control_dir(Path(root)) / "skills"


class PathAuthority:
    def __init__(self, repository: SpaceRepository, settings: HaloSettings) -> None:
        self._repository = repository
        self._settings = settings

    @property
    def global_skills_dir(self) -> Path:
        return self._settings.global_skills_dir.resolve()

    # -- Skills ----------------------------------------------------------------

    def allowed_skills_dirs(self) -> list[Path]:
        """Global skills dir plus ``{root}/.halo/skills`` for every known space."""
        space_dirs = [space_skills_dir(p).resolve() for p in self._repository.get_all_space_paths()]
        return [self.global_skills_dir, *space_dirs]

    def resolve_space_skills_dir(self, space_dir: str | Path | None) -> Path | None:
        """The skills dir for ``space_dir``, or ``None`` if it is not a registered space."""
        if not space_dir:
            return None
        target = space_skills_dir(space_dir).resolve()
        return target if target in self.allowed_skills_dirs() else None

    def is_allowed_skills_path(self, path: str | Path) -> bool:
        return any(is_inside_dir(path, allowed) for allowed in self.allowed_skills_dirs())

    # -- Artifacts -------------------------------------------------------------

    def is_path_allowed(self, target: str | Path) -> bool:
        """True if ``target`` exists and its real path lies inside an existing space root."""
        if not os.path.exists(target):
            return False
        real_target = Path(os.path.realpath(target))
        for base in self._repository.get_all_space_paths():
            if not base.exists():
                continue
            if real_target.is_relative_to(os.path.realpath(base)):
                return True
        return False
