"""SQL Server provider for sqlshift migrations.

Usage:
    from sqlshift.sqlserver import SqlServerMigrationSession, create_migrator

    with SqlServerMigrationSession("mssql+pyodbc://...") as session:
        create_migrator(session).migrate(registry.get_all())
"""

from .bootstrap import (
    DatabaseEnsureResult,
    DatabaseEnsureStatus,
    ensure_database_exists,
)
from .executor import SqlServerMigrationExecutor
from .factory import create_migrator
from .generator import SqlServerMigrationSqlGenerator
from .history import SqlServerMigrationHistoryRepository
from .lock import SqlServerMigrationLock, SqlServerMigrationLockProvider
from .session import SqlServerMigrationSession
from .splitter import split_batches

__all__ = [
    "DatabaseEnsureResult",
    "DatabaseEnsureStatus",
    "ensure_database_exists",
    "SqlServerMigrationExecutor",
    "create_migrator",
    "SqlServerMigrationSqlGenerator",
    "SqlServerMigrationHistoryRepository",
    "SqlServerMigrationLock",
    "SqlServerMigrationLockProvider",
    "SqlServerMigrationSession",
    "split_batches",
]
