"""Migration history table on SQL Server."""

import logging
from datetime import datetime, timezone

from sqlalchemy import text

from .generator import quote_identifier
from .session import SqlServerMigrationSession

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SCHEMA = "dbo"
DEFAULT_HISTORY_TABLE = "__SqlShiftMigrationsHistory"


def _literal(value: str) -> str:
    return value.replace("'", "''")


class SqlServerMigrationHistoryRepository:
    """Stores one row per applied migration.

    Table layout::

        MigrationId     NVARCHAR(64)  NOT NULL  (primary key)
        Name            NVARCHAR(200) NOT NULL
        ProductVersion  NVARCHAR(64)  NOT NULL
        AppliedAtUtc    DATETIME2     NOT NULL
    """

    def __init__(
        self,
        session: SqlServerMigrationSession,
        schema: str = DEFAULT_HISTORY_SCHEMA,
        table: str = DEFAULT_HISTORY_TABLE,
    ):
        self.session = session
        self.schema = schema
        self.table = table

    @property
    def qualified_table(self) -> str:
        return f"{quote_identifier(self.schema)}.{quote_identifier(self.table)}"

    def ensure_created(self) -> None:
        """Create the schema and history table if they are missing."""
        schema_ident = self.schema.replace("]", "]]")
        self.session.execute_non_query(
            f"IF NOT EXISTS (SELECT 1 FROM sys.schemas WHERE name = N'{_literal(self.schema)}')\n"
            f"    EXEC(N'CREATE SCHEMA [{_literal(schema_ident)}]');"
        )
        self.session.execute_non_query(
            f"IF OBJECT_ID(N'{_literal(self.qualified_table)}', N'U') IS NULL\n"
            "BEGIN\n"
            f"    CREATE TABLE {self.qualified_table}\n"
            "    (\n"
            "        MigrationId     NVARCHAR(64)  NOT NULL,\n"
            "        Name            NVARCHAR(200) NOT NULL,\n"
            "        ProductVersion  NVARCHAR(64)  NOT NULL,\n"
            "        AppliedAtUtc    DATETIME2     NOT NULL,\n"
            f"        CONSTRAINT {quote_identifier('PK_' + self.table)} PRIMARY KEY (MigrationId)\n"
            "    );\n"
            "END"
        )
        logger.debug(f"History table {self.qualified_table} ready")

    def exists(self) -> bool:
        """True when the history table is present. Creates nothing."""
        found = self.session.execute_scalar(
            f"SELECT CASE WHEN OBJECT_ID(N'{_literal(self.qualified_table)}', N'U') "
            "IS NULL THEN 0 ELSE 1 END;"
        )
        return bool(found)

    def get_applied_migration_ids(self) -> set[str]:
        """Ids of applied migrations (compared case-sensitively)."""
        return set(
            self.session.query_strings(
                f"SELECT MigrationId FROM {self.qualified_table} ORDER BY MigrationId;"
            )
        )

    def insert(
        self,
        migration_id: str,
        name: str,
        product_version: str,
        applied_at_utc: datetime,
    ) -> None:
        """Record a migration as applied."""
        if applied_at_utc.tzinfo is not None:
            applied_at_utc = applied_at_utc.astimezone(timezone.utc).replace(tzinfo=None)

        statement = text(
            f"INSERT INTO {self.qualified_table} "
            "(MigrationId, Name, ProductVersion, AppliedAtUtc) "
            "VALUES (:migration_id, :name, :product_version, :applied_at_utc)"
        )
        self.session.execute(
            statement,
            {
                "migration_id": migration_id,
                "name": name,
                "product_version": product_version,
                "applied_at_utc": applied_at_utc,
            },
        )
