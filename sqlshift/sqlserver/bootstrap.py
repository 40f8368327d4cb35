"""Best-effort creation of the target database.

Only runs when the target cannot be opened because it does not exist
(SQL Server error 4060). Never raises; the outcome is reported in a
``DatabaseEnsureResult``.
"""

import logging
import re
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

CANNOT_OPEN_DATABASE = 4060

_ERROR_NUMBER = re.compile(r"\((\d{3,6})\)")


class DatabaseEnsureStatus(IntEnum):
    FAILED = -1
    ALREADY_EXISTS = 0
    CREATED = 1
    SKIPPED_NO_MASTER_ACCESS = 2
    SKIPPED_NO_CREATE_PERMISSION = 3


@dataclass(frozen=True)
class DatabaseEnsureResult:
    status: DatabaseEnsureStatus
    database: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status in (DatabaseEnsureStatus.ALREADY_EXISTS, DatabaseEnsureStatus.CREATED)


def sql_error_number(error: BaseException) -> Optional[int]:
    """SQL Server error number carried by a (possibly wrapped) driver error.

    pymssql puts the number in ``args[0]``; pyodbc embeds it in the
    message as ``(4060)``.
    """
    original = getattr(error, "orig", None) or error
    args = getattr(original, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    match = _ERROR_NUMBER.search(str(original))
    return int(match.group(1)) if match else None


def _master_url(url: URL) -> URL:
    master = url.set(database="master")
    query = {k.lower(): v for k, v in master.query.items()}
    encrypt = str(query.get("encrypt", "")).lower()
    if encrypt in ("yes", "true", "mandatory") and "trustservercertificate" not in query:
        master = master.update_query_dict({"TrustServerCertificate": "yes"})
    return master


def _default_engine_factory(url: URL) -> Engine:
    return create_engine(url, poolclass=NullPool)


def _try_open(url: URL, engine_factory: Callable[[URL], Engine]) -> Optional[Exception]:
    """Open and close a connection; return the error instead of raising."""
    try:
        engine = engine_factory(url)
        try:
            with engine.connect():
                pass
        finally:
            engine.dispose()
    except Exception as e:
        return e
    return None


def ensure_database_exists(
    url: Union[str, URL],
    open_retries: int = 2,
    engine_factory: Callable[[URL], Engine] = _default_engine_factory,
    retry_delay: float = 0.15,
) -> DatabaseEnsureResult:
    """Make sure the database named in ``url`` exists.

    1. Try the target database; success means it already exists.
    2. On error 4060, connect to ``master`` without assuming permissions.
    3. Create the database if ``DB_ID`` does not find it.
    4. Re-open the target a bounded number of times.

    Args:
        url: SQLAlchemy URL of the target database
        open_retries: Attempts to open the target after creation
        engine_factory: Builds an engine for a URL
        retry_delay: Seconds to wait between re-open attempts

    Returns:
        Outcome of the check; errors are captured, not raised
    """
    try:
        target = make_url(url)
    except Exception as e:
        return DatabaseEnsureResult(DatabaseEnsureStatus.FAILED, "<invalid>", e)

    database = target.database
    if not database:
        return DatabaseEnsureResult(
            DatabaseEnsureStatus.FAILED,
            "<empty>",
            ValueError("Connection URL must include a database name"),
        )

    open_error = _try_open(target, engine_factory)
    if open_error is None:
        return DatabaseEnsureResult(DatabaseEnsureStatus.ALREADY_EXISTS, database)

    if sql_error_number(open_error) != CANNOT_OPEN_DATABASE:
        return DatabaseEnsureResult(DatabaseEnsureStatus.FAILED, database, open_error)

    master = _master_url(target)
    master_error = _try_open(master, engine_factory)
    if master_error is not None:
        return DatabaseEnsureResult(
            DatabaseEnsureStatus.SKIPPED_NO_MASTER_ACCESS, database, master_error
        )

    try:
        engine = engine_factory(master)
        try:
            with engine.connect() as connection:
                connection = connection.execution_options(isolation_level="AUTOCOMMIT")
                exists = connection.execute(
                    text("SELECT CASE WHEN DB_ID(:db) IS NULL THEN 0 ELSE 1 END"),
                    {"db": database},
                ).scalar()
                if not exists:
                    ident = database.replace("]", "]]")
                    try:
                        connection.exec_driver_sql(
                            f"CREATE DATABASE [{ident}];",
                            execution_options={"no_parameters": True},
                        )
                    except Exception as create_error:
                        return DatabaseEnsureResult(
                            DatabaseEnsureStatus.SKIPPED_NO_CREATE_PERMISSION,
                            database,
                            create_error,
                        )
                    logger.info(f"Created database '{database}'")
        finally:
            engine.dispose()
    except Exception as e:
        return DatabaseEnsureResult(DatabaseEnsureStatus.FAILED, database, e)

    for attempt in range(max(1, open_retries)):
        if _try_open(target, engine_factory) is None:
            return DatabaseEnsureResult(DatabaseEnsureStatus.CREATED, database)
        if attempt + 1 < max(1, open_retries):
            time.sleep(retry_delay)

    return DatabaseEnsureResult(
        DatabaseEnsureStatus.FAILED,
        database,
        RuntimeError(f"Database '{database}' exists but cannot be opened after retries"),
    )
