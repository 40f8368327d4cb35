"""Locate the project root by walking up from a directory."""

from pathlib import Path

from ..migrations.base import MigrationError

ROOT_MARKERS = ("pyproject.toml", "setup.cfg", "setup.py", ".sqlshift")


class ProjectRootNotFoundError(MigrationError):
    """Raised when no ancestor directory looks like a project root."""

    pass


def find_project_root(start: Path, max_up: int = 12) -> Path:
    """First directory at or above ``start`` holding a root marker.

    Args:
        start: Directory to start from
        max_up: Maximum number of directories to inspect

    Raises:
        ProjectRootNotFoundError: If no marker is found
    """
    directory = Path(start).resolve()
    for _ in range(max_up):
        if any((directory / marker).exists() for marker in ROOT_MARKERS):
            return directory
        if directory.parent == directory:
            break
        directory = directory.parent

    raise ProjectRootNotFoundError(
        f"No project root found above {start} "
        f"(looked for {', '.join(ROOT_MARKERS)})"
    )
