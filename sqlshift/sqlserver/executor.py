"""Batch executor running on a migration session."""

from .session import DEFAULT_TIMEOUT_SECONDS, SqlServerMigrationSession


class SqlServerMigrationExecutor:
    """Executes SQL batches and exposes the session's transaction control."""

    def __init__(self, session: SqlServerMigrationSession):
        self.session = session

    def execute_batch(self, sql: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.session.execute_non_query(sql, timeout_seconds)

    def begin_transaction(self) -> None:
        self.session.begin_transaction()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
