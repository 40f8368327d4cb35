"""Single-connection session shared by the SQL Server collaborators.

History, lock and executor all run on the same connection so the
session-owned application lock covers every migration statement.
"""

import logging
from typing import Any, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine, RootTransaction
from sqlalchemy.sql.elements import TextClause

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120

# Raw T-SQL goes to the driver untouched (no paramstyle interpretation)
_RAW_OPTIONS = {"no_parameters": True}


class SqlServerMigrationSession:
    """Wraps one SQLAlchemy connection.

    Outside an explicit transaction every statement is committed as soon
    as it runs. ``begin_transaction`` opens a transaction that spans
    statements until ``commit`` or ``rollback``.

    Args:
        bind: An Engine, or a URL to create one from
    """

    def __init__(self, bind: Union[Engine, str, URL]):
        if isinstance(bind, Engine):
            self._engine = bind
            self._owns_engine = False
        else:
            self._engine = create_engine(bind)
            self._owns_engine = True

        self.connection: Connection = self._engine.connect()
        self._transaction: Optional[RootTransaction] = None

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        """Open an explicit transaction. No-op if one is already open."""
        if self._transaction is not None:
            return
        if self.connection.in_transaction():
            self.connection.commit()
        self._transaction = self.connection.begin()

    def commit(self) -> None:
        if self._transaction is None:
            return
        transaction, self._transaction = self._transaction, None
        transaction.commit()

    def rollback(self) -> None:
        if self._transaction is None:
            return
        transaction, self._transaction = self._transaction, None
        transaction.rollback()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _apply_timeout(self, timeout_seconds: int) -> None:
        # pyodbc exposes a per-connection query timeout; other drivers may not
        dbapi_connection = self.connection.connection.dbapi_connection
        if dbapi_connection is not None and hasattr(dbapi_connection, "timeout"):
            dbapi_connection.timeout = timeout_seconds

    def _autocommit(self) -> None:
        if self._transaction is None and self.connection.in_transaction():
            self.connection.commit()

    def execute_non_query(self, sql: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> int:
        """Execute a raw T-SQL batch and return the affected row count."""
        self._apply_timeout(timeout_seconds)
        result = self.connection.exec_driver_sql(sql, execution_options=_RAW_OPTIONS)
        rowcount = result.rowcount
        result.close()
        self._autocommit()
        return rowcount

    def execute_scalar(self, sql: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> Any:
        """Execute a raw T-SQL batch and return the first column of the first row."""
        self._apply_timeout(timeout_seconds)
        value = self.connection.exec_driver_sql(sql, execution_options=_RAW_OPTIONS).scalar()
        self._autocommit()
        return value

    def query_strings(self, sql: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> list[str]:
        """Execute a query and return its first column as strings."""
        self._apply_timeout(timeout_seconds)
        rows = self.connection.exec_driver_sql(sql, execution_options=_RAW_OPTIONS).all()
        self._autocommit()
        return [str(row[0]) for row in rows]

    def execute(
        self,
        statement: TextClause,
        parameters: Optional[dict[str, Any]] = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Execute a ``text()`` statement with bound parameters."""
        self._apply_timeout(timeout_seconds)
        self.connection.execute(statement, parameters or {})
        self._autocommit()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Roll back any open transaction and close the connection."""
        try:
            self.rollback()
        finally:
            self.connection.close()
            if self._owns_engine:
                self._engine.dispose()

    def __enter__(self) -> "SqlServerMigrationSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
