"""Project layout used by the CLI.

    <root>/
        db_assets/
            procedures/ views/ functions_scalar/ functions_table/ triggers/
        migrations/
            programmables.snapshot.json
            migrations.manifest.json
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .fileio import atomic_write_json

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "sqlshift.Migrations"


@dataclass(frozen=True)
class ProjectLayoutOptions:
    """Directory and file names of a project layout."""

    assets_dir_name: str = "db_assets"
    migrations_dir_name: str = "migrations"
    asset_subdirs: tuple[str, ...] = field(
        default=("procedures", "views", "functions_scalar", "functions_table", "triggers")
    )
    snapshot_file_name: str = "programmables.snapshot.json"
    manifest_file_name: str = "migrations.manifest.json"
    scope: str = DEFAULT_SCOPE


@dataclass(frozen=True)
class ProjectLayoutInfo:
    """Resolved paths of a project layout."""

    project_root: Path
    assets_root: Path
    migrations_root: Path
    snapshot_path: Path
    manifest_path: Path

    @classmethod
    def resolve(
        cls, project_root: Path, options: Optional[ProjectLayoutOptions] = None
    ) -> "ProjectLayoutInfo":
        """Compute layout paths without touching the filesystem."""
        options = options or ProjectLayoutOptions()
        root = Path(project_root)
        migrations_root = root / options.migrations_dir_name
        return cls(
            project_root=root,
            assets_root=root / options.assets_dir_name,
            migrations_root=migrations_root,
            snapshot_path=migrations_root / options.snapshot_file_name,
            manifest_path=migrations_root / options.manifest_file_name,
        )


def ensure_layout(
    project_root: Path, options: Optional[ProjectLayoutOptions] = None
) -> ProjectLayoutInfo:
    """Create the layout under ``project_root``.

    Idempotent: existing directories are kept and existing snapshot or
    manifest files are never overwritten.
    """
    options = options or ProjectLayoutOptions()
    info = ProjectLayoutInfo.resolve(project_root, options)

    info.assets_root.mkdir(parents=True, exist_ok=True)
    info.migrations_root.mkdir(parents=True, exist_ok=True)
    for subdir in options.asset_subdirs:
        (info.assets_root / subdir).mkdir(exist_ok=True)

    if not info.snapshot_path.exists():
        atomic_write_json(info.snapshot_path, {"items": []})
        logger.info(f"Created {info.snapshot_path}")

    if not info.manifest_path.exists():
        atomic_write_json(
            info.manifest_path,
            {
                "scope": options.scope,
                "createdAtUtc": datetime.now(timezone.utc).isoformat(),
                "migrations": [],
            },
        )
        logger.info(f"Created {info.manifest_path}")

    return info
