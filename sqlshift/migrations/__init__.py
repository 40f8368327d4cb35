"""Migration units, discovery and the Migrator.

Provides:
- BaseMigration units with ``up``/``down`` recorded through a MigrationBuilder
- Discovery of units from a directory of Python files
- Ordered, locked, exactly-once application with history tracking
- Dry-run scripting of pending migrations

Usage:
    from sqlshift.migrations import Migrator, discover_migrations

    registry = discover_migrations(Path("migrations"))
    result = migrator.migrate(registry.get_all())

CLI Usage:
    python -m sqlshift.migrations init --root .
    python -m sqlshift.migrations prog add --name Programmables_Update
    python -m sqlshift.migrations db update --conn mssql+pyodbc://...
"""

from .base import (
    AppliedMigration,
    BaseMigration,
    MigrationError,
    MigrationLockError,
    UnsupportedOperationError,
)
from .interfaces import (
    MigrationExecutor,
    MigrationHistoryRepository,
    MigrationLock,
    MigrationLockProvider,
    MigrationSqlGenerator,
    TransactionalMigrationExecutor,
)
from .registry import MigrationRegistry, discover_migrations
from .runner import (
    MigrationResult,
    MigrationScript,
    Migrator,
    MigratorOptions,
    MigratorState,
)

__all__ = [
    # Base classes
    "AppliedMigration",
    "BaseMigration",
    "MigrationError",
    "MigrationLockError",
    "UnsupportedOperationError",
    # Collaborators
    "MigrationExecutor",
    "MigrationHistoryRepository",
    "MigrationLock",
    "MigrationLockProvider",
    "MigrationSqlGenerator",
    "TransactionalMigrationExecutor",
    # Registry
    "MigrationRegistry",
    "discover_migrations",
    # Runner
    "MigrationResult",
    "MigrationScript",
    "Migrator",
    "MigratorOptions",
    "MigratorState",
]
