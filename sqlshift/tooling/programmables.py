"""``prog add`` unit of work.

provider -> snapshot load -> diff -> scaffold -> snapshot save -> manifest append

The migration file, snapshot and manifest are written one after another.
Each write is atomic on its own, but a failure between them leaves the
earlier files in place (for example a new migration with a stale snapshot).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..assets.models import DbAssetKind
from ..assets.providers import AssetProvider, FileSystemAssetProvider
from ..diff import ProgrammablesDiffer
from ..operations import MigrationOperation
from ..scaffold import MigrationScaffolder, ScaffoldedMigration
from ..snapshot import JsonSnapshotStore, ProgrammableSnapshot
from .layout import ProjectLayoutInfo
from .manifest import append_manifest

logger = logging.getLogger(__name__)

DEFAULT_PROGRAMMABLES_MIGRATION_NAME = "Programmables_Update"


@dataclass
class ProgrammablesScaffoldResult:
    """Outcome of ``add_programmables_migration``."""

    operations: list[MigrationOperation]
    migration: Optional[ScaffoldedMigration] = None

    @property
    def up_to_date(self) -> bool:
        """True when no asset changed and nothing was written."""
        return not self.operations


def _manifest_file_path(layout: ProjectLayoutInfo, path: Path) -> Path:
    try:
        return path.relative_to(layout.project_root)
    except ValueError:
        return path


def add_programmables_migration(
    layout: ProjectLayoutInfo,
    name: str = DEFAULT_PROGRAMMABLES_MIGRATION_NAME,
    provider: Optional[AssetProvider] = None,
    scaffolder: Optional[MigrationScaffolder] = None,
    store: Optional[JsonSnapshotStore] = None,
    default_schema: str = "dbo",
    default_kind: DbAssetKind = DbAssetKind.PROCEDURE,
) -> ProgrammablesScaffoldResult:
    """Scaffold a migration for every new or changed programmable asset.

    Args:
        layout: Resolved project layout
        name: Migration name
        provider: Asset source (defaults to the layout's assets directory)
        scaffolder: Migration file writer
        store: Snapshot store
        default_schema: Schema for asset files named without one
        default_kind: Kind for asset files outside a known folder

    Returns:
        Operations found and, when there were any, the written migration
    """
    provider = provider or FileSystemAssetProvider(
        layout.assets_root, default_kind=default_kind, default_schema=default_schema
    )
    scaffolder = scaffolder or MigrationScaffolder()
    store = store or JsonSnapshotStore()

    assets = list(provider.get_assets())
    old_snapshot = store.load(layout.snapshot_path)
    operations = ProgrammablesDiffer().diff(old_snapshot, assets)

    if not operations:
        logger.info("Programmables are up to date")
        return ProgrammablesScaffoldResult(operations=[])

    migration = scaffolder.scaffold(layout.migrations_root, name, operations)

    # Snapshot reflects exactly the current assets, never a merge
    store.save(layout.snapshot_path, ProgrammableSnapshot.from_assets(assets))

    append_manifest(
        layout.manifest_path,
        migration.id,
        migration.name,
        migration.operations_count,
        _manifest_file_path(layout, migration.path),
    )

    return ProgrammablesScaffoldResult(operations=operations, migration=migration)
