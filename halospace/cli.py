import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from halospace.spaces.errors import SpaceError


def _repository():
    from halospace.spaces.repository import SpaceRepository
    from halospace.spaces.settings import get_settings

    settings = get_settings()
    settings.ensure_directories()
    return SpaceRepository(settings)


def _emit(data: object = None) -> None:
    """Print a ``{"success": true, "data": ...}`` envelope."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(data, list):
        data = [d.model_dump(mode="json", by_alias=True, exclude_none=True) if hasattr(d, "model_dump") else d for d in data]
    click.echo(json.dumps({"success": True, "data": data}, indent=2, default=str))


def _fail(error: str) -> NoReturn:
    click.echo(json.dumps({"success": False, "error": error}))
    sys.exit(1)


@click.group()
def main() -> None:
    """Halospace - workspace registry for the Halo desktop client."""
    from halospace.spaces.log import setup_logging
    from halospace.spaces.settings import get_settings

    setup_logging(get_settings().log_level)


# ---------------------------------------------------------------------------
# Spaces
# ---------------------------------------------------------------------------


@main.command("list")
def list_cmd() -> None:
    """List all spaces, most recently updated first."""
    with _repository() as repo:
        _emit(repo.list_spaces())


@main.command()
def temp() -> None:
    """Show the temp space."""
    with _repository() as repo:
        _emit(repo.get_temp_space())


@main.command()
@click.argument("name")
@click.option("--icon", default="folder", show_default=True, help="Icon identifier.")
@click.option("--path", "custom_path", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Adopt an existing folder instead of creating one under the spaces dir.")
def create(name: str, icon: str, custom_path: Path | None) -> None:
    """Create a new space."""
    from halospace.spaces.models.api import SpaceCreate

    with _repository() as repo:
        try:
            space = repo.create_space(SpaceCreate(name=name, icon=icon, custom_path=custom_path))
        except OSError as exc:
            _fail(str(exc))
        _emit(space)


@main.command()
@click.argument("space_id")
def show(space_id: str) -> None:
    """Show a space by id."""
    with _repository() as repo:
        result = repo.try_get_space(space_id)
        if not result.ok:
            _fail(f"{result.error}: {result.message}")
        _emit(result.value)


@main.command()
@click.argument("space_id")
@click.option("--name", default=None, help="New display name.")
@click.option("--icon", default=None, help="New icon identifier.")
def update(space_id: str, name: str | None, icon: str | None) -> None:
    """Rename a space or change its icon."""
    from halospace.spaces.models.api import SpaceUpdate

    with _repository() as repo:
        space = repo.update_space(space_id, SpaceUpdate(name=name, icon=icon))
        if space is None:
            _fail("Failed to update space")
        _emit(space)


@main.command()
@click.argument("space_id")
@click.option("--chat-width", type=int, default=None, help="Chat panel width in pixels.")
@click.option("--artifact-rail/--no-artifact-rail", default=None, help="Expand or collapse the artifact rail.")
def prefs(space_id: str, chat_width: int | None, artifact_rail: bool | None) -> None:
    """Show or update a space's layout preferences."""
    from halospace.spaces.models.space import SpaceLayoutPreferences, SpacePreferences

    with _repository() as repo:
        if chat_width is None and artifact_rail is None:
            _emit(repo.get_space_preferences(space_id))
            return
        partial = SpacePreferences(
            layout=SpaceLayoutPreferences(chat_width=chat_width, artifact_rail_expanded=artifact_rail)
        )
        space = repo.update_space_preferences(space_id, partial)
        if space is None:
            _fail("Failed to update space preferences")
        _emit(space.preferences)


@main.command()
@click.argument("space_id")
def delete(space_id: str) -> None:
    """Delete a space (custom-path spaces keep their files)."""
    with _repository() as repo:
        result = repo.try_delete_space(space_id)
        if not result.ok:
            _fail(f"{result.error}: {result.message}")
        _emit()


@main.command("open")
@click.argument("space_id")
def open_cmd(space_id: str) -> None:
    """Open a space folder in the file manager."""
    with _repository() as repo:
        if not repo.open_space_folder(space_id):
            _fail("Cannot open space folder")
        _emit()


@main.command()
def paths() -> None:
    """Print every valid space root (the path allow-list base)."""
    with _repository() as repo:
        _emit([str(p) for p in repo.get_all_space_paths()])


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


def _skill_store(repo):
    from halospace.spaces.authority import PathAuthority
    from halospace.spaces.skills import SkillStore

    return SkillStore(PathAuthority(repo, repo.settings), repo.settings)


@main.group()
def skills() -> None:
    """Global and per-space skill files."""


@skills.command("list")
@click.option("--space-dir", type=click.Path(path_type=Path), default=None, help="Include this space's skills.")
def skills_list(space_dir: Path | None) -> None:
    """List skills."""
    with _repository() as repo:
        _emit(_skill_store(repo).list(space_dir))


@skills.command("save")
@click.argument("name")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--scope", type=click.Choice(["global", "space"]), default="global", show_default=True)
@click.option("--space-dir", type=click.Path(path_type=Path), default=None, help="Target space root (scope=space).")
def skills_save(name: str, source, scope: str, space_dir: Path | None) -> None:
    """Save a skill from SOURCE (use - for stdin)."""
    from halospace.spaces.skills import SkillSource

    with _repository() as repo:
        try:
            target = _skill_store(repo).save(name, source.read(), SkillSource(scope), space_dir)
        except (SpaceError, OSError) as exc:
            _fail(str(exc))
        _emit(str(target))


@skills.command("delete")
@click.argument("file_path", type=click.Path(path_type=Path))
def skills_delete(file_path: Path) -> None:
    """Delete a skill file."""
    with _repository() as repo:
        try:
            _skill_store(repo).delete(file_path)
        except (SpaceError, OSError) as exc:
            _fail(str(exc))
        _emit()


if __name__ == "__main__":
    main()
