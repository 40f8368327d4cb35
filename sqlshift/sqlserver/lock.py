"""Cross-process migration lock using SQL Server application locks."""

import logging
from typing import Optional

from ..migrations.base import MigrationLockError
from .session import SqlServerMigrationSession

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_MS = 30_000


def _literal(value: str) -> str:
    return value.replace("'", "''")


class SqlServerMigrationLock:
    """Held ``sp_getapplock`` lock. Released at most once."""

    def __init__(self, session: SqlServerMigrationSession, scope: str):
        self.session = session
        self.scope = scope
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self.session.execute_non_query(
            "EXEC sp_releaseapplock\n"
            f"    @Resource = N'{_literal(self.scope)}',\n"
            "    @LockOwner = 'Session';"
        )
        logger.debug(f"Released application lock '{self.scope}'")

    def __enter__(self) -> "SqlServerMigrationLock":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.release()
            return None
        # Keep the error that ended the block visible
        try:
            self.release()
        except Exception as release_error:
            logger.warning(f"Failed to release application lock '{self.scope}': {release_error}")
        return None


class SqlServerMigrationLockProvider:
    """Acquires an exclusive session-owned application lock per scope.

    Args:
        session: Session whose connection owns the lock
        timeout_ms: How long ``sp_getapplock`` waits before giving up
    """

    def __init__(self, session: SqlServerMigrationSession, timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS):
        self.session = session
        self.timeout_ms = timeout_ms

    def acquire(self, scope: str) -> SqlServerMigrationLock:
        """Acquire the lock for ``scope``.

        Raises:
            MigrationLockError: If ``sp_getapplock`` returns a negative code
                (timeout, cancellation, deadlock or error)
        """
        sql = (
            "SET NOCOUNT ON;\n"
            "DECLARE @res INT;\n"
            "EXEC @res = sp_getapplock\n"
            f"    @Resource = N'{_literal(scope)}',\n"
            "    @LockMode = 'Exclusive',\n"
            "    @LockOwner = 'Session',\n"
            f"    @LockTimeout = {int(self.timeout_ms)};\n"
            "SELECT @res;"
        )
        result = self.session.execute_scalar(sql)

        if result is None or int(result) < 0:
            raise MigrationLockError(f"sp_getapplock failed for '{scope}', code={result}")

        logger.debug(f"Acquired application lock '{scope}' (code={result})")
        return SqlServerMigrationLock(self.session, scope)
