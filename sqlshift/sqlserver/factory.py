"""Wiring of the SQL Server collaborators into a Migrator."""

from typing import Optional

from ..config import MigratorConfig, get_config
from ..migrations.runner import Migrator
from .executor import SqlServerMigrationExecutor
from .generator import SqlServerMigrationSqlGenerator
from .history import SqlServerMigrationHistoryRepository
from .lock import SqlServerMigrationLockProvider
from .session import SqlServerMigrationSession


def create_migrator(
    session: SqlServerMigrationSession,
    config: Optional[MigratorConfig] = None,
    transactional: bool = False,
) -> Migrator:
    """Build a Migrator whose collaborators all share ``session``."""
    config = config or get_config()
    return Migrator(
        sql_generator=SqlServerMigrationSqlGenerator(),
        history=SqlServerMigrationHistoryRepository(
            session, schema=config.history_schema, table=config.history_table
        ),
        lock_provider=SqlServerMigrationLockProvider(session, timeout_ms=config.lock_timeout_ms),
        executor=SqlServerMigrationExecutor(session),
        options=config.to_options(transactional=transactional),
    )
