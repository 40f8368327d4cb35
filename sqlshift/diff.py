"""Drift detection for programmable objects.

Compares current assets against the last snapshot and emits a
create-or-alter operation for every new or changed asset. Objects missing
from the current assets are never dropped.
"""

import logging
from collections.abc import Callable, Iterable

from .assets.hasher import hash_sql
from .assets.models import DbAsset, DbAssetKind
from .operations import (
    CreateOrAlterRoutine,
    CreateOrAlterTrigger,
    CreateOrAlterView,
    MigrationOperation,
    RoutineKind,
    SqlOperation,
)
from .snapshot import ProgrammableSnapshot, snapshot_key, unique_assets

logger = logging.getLogger(__name__)


_OPERATION_FACTORIES: dict[DbAssetKind, Callable[[DbAsset], MigrationOperation]] = {
    DbAssetKind.VIEW: lambda a: CreateOrAlterView(a.schema, a.name, a.sql),
    DbAssetKind.PROCEDURE: lambda a: CreateOrAlterRoutine(
        a.schema, a.name, RoutineKind.PROCEDURE, a.sql
    ),
    DbAssetKind.SCALAR_FUNCTION: lambda a: CreateOrAlterRoutine(
        a.schema, a.name, RoutineKind.SCALAR_FUNCTION, a.sql
    ),
    DbAssetKind.TABLE_FUNCTION: lambda a: CreateOrAlterRoutine(
        a.schema, a.name, RoutineKind.TABLE_FUNCTION, a.sql
    ),
    DbAssetKind.TRIGGER: lambda a: CreateOrAlterTrigger(a.schema, a.name, a.sql),
}


def to_create_or_alter(asset: DbAsset) -> MigrationOperation:
    """Operation that (re)defines ``asset``; unknown kinds become raw SQL."""
    factory = _OPERATION_FACTORIES.get(asset.kind)
    if factory is None:
        return SqlOperation(asset.sql)
    return factory(asset)


class ProgrammablesDiffer:
    """Computes create-or-alter operations for drifted assets."""

    def diff(
        self, old_snapshot: ProgrammableSnapshot, current_assets: Iterable[DbAsset]
    ) -> list[MigrationOperation]:
        """Diff current assets against a snapshot.

        Args:
            old_snapshot: Snapshot saved by the previous scaffold
            current_assets: Assets as they are now, in provider order

        Returns:
            Operations in the order of ``current_assets``
        """
        old = old_snapshot.to_lookup()
        operations: list[MigrationOperation] = []

        for asset in unique_assets(current_assets):
            current_hash = hash_sql(asset.sql)
            previous = old.get(snapshot_key(asset.schema, asset.name, asset.kind))

            if previous is None:
                logger.debug(f"New asset {asset.qualified_name}")
            elif previous.hash.upper() != current_hash.upper():
                logger.debug(f"Changed asset {asset.qualified_name}")
            else:
                continue

            operations.append(to_create_or_alter(asset))

        return operations
