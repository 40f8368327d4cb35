"""SQL Server (T-SQL) generation for migration operations.

One batch per DDL statement. View, routine and trigger definitions are
split on ``GO`` lines. Foreign keys declared inside a ``CreateTable`` are
emitted after every other batch of the same call so tables can reference
each other regardless of creation order.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..migrations.base import UnsupportedOperationError
from ..operations import (
    AddCheck,
    AddColumn,
    AddForeignKey,
    AddUnique,
    BoolType,
    BytesType,
    ColumnType,
    CreateIndex,
    CreateTable,
    DateTimeOffsetType,
    DateTimeType,
    DecimalType,
    DoubleType,
    GuidType,
    Int32Type,
    Int64Type,
    JsonType,
    MigrationOperation,
    OperationKind,
    ReferentialAction,
    RoutineKind,
    StringType,
)
from .splitter import split_batches

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Bracket-quote an identifier, doubling any ``]``."""
    return f"[{name.replace(']', ']]')}]"


def quote_string(value: str) -> str:
    """Unicode string literal with doubled single quotes."""
    return "N'" + value.replace("'", "''") + "'"


def _qualified(schema: str, name: str) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(name)}"


def _column_list(columns: Sequence[str]) -> str:
    return ", ".join(quote_identifier(c) for c in columns)


def map_type(column_type: ColumnType) -> str:
    """T-SQL type for a logical column type."""
    if isinstance(column_type, Int32Type):
        return "INT"
    if isinstance(column_type, Int64Type):
        return "BIGINT"
    if isinstance(column_type, BoolType):
        return "BIT"
    if isinstance(column_type, DateTimeOffsetType):
        return "DATETIMEOFFSET"
    if isinstance(column_type, DateTimeType):
        return "DATETIME2"
    if isinstance(column_type, GuidType):
        return "UNIQUEIDENTIFIER"
    if isinstance(column_type, DecimalType):
        return f"DECIMAL({column_type.precision},{column_type.scale})"
    if isinstance(column_type, DoubleType):
        return "FLOAT"
    if isinstance(column_type, StringType):
        base = "NVARCHAR" if column_type.unicode else "VARCHAR"
        length = "MAX" if column_type.max_length is None else str(column_type.max_length)
        return f"{base}({length})"
    if isinstance(column_type, BytesType):
        length = "MAX" if column_type.max_length is None else str(column_type.max_length)
        return f"VARBINARY({length})"
    if isinstance(column_type, JsonType):
        return "NVARCHAR(MAX)"
    raise UnsupportedOperationError(f"Unsupported column type: {type(column_type).__name__}")


def format_default(value: Any) -> str:
    """T-SQL literal for a column default value."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, datetime):
        # DATETIME2 carries 7 fractional digits
        return "'" + value.strftime("%Y-%m-%dT%H:%M:%S.%f") + "0'"
    if isinstance(value, date):
        return "'" + value.isoformat() + "'"
    return quote_string(str(value))


_ACTION_SQL = {
    ReferentialAction.CASCADE: "CASCADE",
    ReferentialAction.SET_NULL: "SET NULL",
    ReferentialAction.SET_DEFAULT: "SET DEFAULT",
    # SQL Server has no RESTRICT; NO ACTION is the equivalent
    ReferentialAction.RESTRICT: "NO ACTION",
}


class SqlServerMigrationSqlGenerator:
    """Generates T-SQL batches from migration operations."""

    def __init__(self):
        self._handlers: dict[OperationKind, Callable[[Any], list[str]]] = {
            OperationKind.SQL: lambda op: [op.sql],
            OperationKind.DROP_TABLE: lambda op: [f"DROP TABLE {_qualified(op.schema, op.name)};"],
            OperationKind.ADD_COLUMN: lambda op: [self.build_add_column(op)],
            OperationKind.DROP_COLUMN: lambda op: [
                f"ALTER TABLE {_qualified(op.schema, op.table)} "
                f"DROP COLUMN {quote_identifier(op.name)};"
            ],
            OperationKind.ADD_PRIMARY_KEY: lambda op: [
                f"ALTER TABLE {_qualified(op.schema, op.table)} "
                f"ADD CONSTRAINT {quote_identifier(op.name)} "
                f"PRIMARY KEY ({_column_list(op.columns)});"
            ],
            OperationKind.DROP_PRIMARY_KEY: self._drop_constraint,
            OperationKind.ADD_UNIQUE: lambda op: [self.build_add_unique(op)],
            OperationKind.DROP_UNIQUE: self._drop_constraint,
            OperationKind.ADD_CHECK: lambda op: [self.build_add_check(op)],
            OperationKind.DROP_CHECK: self._drop_constraint,
            OperationKind.CREATE_INDEX: lambda op: [self.build_create_index(op)],
            OperationKind.DROP_INDEX: lambda op: [
                f"DROP INDEX {quote_identifier(op.name)} ON {_qualified(op.schema, op.table)};"
            ],
            OperationKind.ADD_FOREIGN_KEY: lambda op: [self.build_add_foreign_key(op)],
            OperationKind.DROP_FOREIGN_KEY: self._drop_constraint,
            OperationKind.CREATE_OR_ALTER_VIEW: lambda op: split_batches(op.definition_sql),
            OperationKind.DROP_VIEW: lambda op: [f"DROP VIEW {_qualified(op.schema, op.name)};"],
            OperationKind.CREATE_OR_ALTER_ROUTINE: lambda op: split_batches(op.definition_sql),
            OperationKind.DROP_ROUTINE: lambda op: [
                f"DROP {self._routine_keyword(op.routine_kind)} "
                f"{_qualified(op.schema, op.name)};"
            ],
            OperationKind.CREATE_OR_ALTER_TRIGGER: lambda op: split_batches(op.definition_sql),
            OperationKind.DROP_TRIGGER: lambda op: [
                f"DROP TRIGGER {_qualified(op.schema, op.name)};"
            ],
        }

    def generate(self, operations: Sequence[MigrationOperation]) -> list[str]:
        """Translate operations into ordered T-SQL batches.

        Raises:
            UnsupportedOperationError: For an operation kind with no translation
        """
        batches: list[str] = []
        deferred_fks: list[AddForeignKey] = []

        for op in operations:
            kind = getattr(op, "kind", None)
            if kind == OperationKind.CREATE_TABLE:
                batches.extend(self.build_create_table(op))
                deferred_fks.extend(op.foreign_keys)
                continue

            handler = self._handlers.get(kind)
            if handler is None:
                raise UnsupportedOperationError(
                    f"Operation not supported: {type(op).__name__}"
                )
            batches.extend(handler(op))

        batches.extend(self.build_add_foreign_key(fk) for fk in deferred_fks)
        return batches

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def build_create_table(self, op: CreateTable) -> list[str]:
        """CREATE TABLE plus its uniques, checks and indexes (no foreign keys)."""
        definitions = [self.build_column(c) for c in op.columns]
        if op.primary_key is not None:
            definitions.append(
                f"CONSTRAINT {quote_identifier(op.primary_key.name)} "
                f"PRIMARY KEY ({_column_list(op.primary_key.columns)})"
            )

        body = ",\n".join(f"    {d}" for d in definitions)
        batches = [f"CREATE TABLE {_qualified(op.schema, op.name)}\n(\n{body}\n);"]
        batches.extend(self.build_add_unique(u) for u in op.uniques)
        batches.extend(self.build_add_check(c) for c in op.checks)
        batches.extend(self.build_create_index(i) for i in op.indexes)
        return batches

    def build_column(self, column: AddColumn) -> str:
        sql_type = map_type(column.type)

        identity = ""
        if column.is_incremental_key and isinstance(column.type, (Int32Type, Int64Type)):
            identity = " IDENTITY(1,1)"

        nullability = "NULL" if column.nullable else "NOT NULL"
        default = ""
        if column.default_value is not None:
            default = f" DEFAULT {format_default(column.default_value)}"

        return f"{quote_identifier(column.name)} {sql_type}{identity} {nullability}{default}"

    def build_add_column(self, op: AddColumn) -> str:
        return f"ALTER TABLE {_qualified(op.schema, op.table)} ADD {self.build_column(op)};"

    def build_add_unique(self, op: AddUnique) -> str:
        return (
            f"ALTER TABLE {_qualified(op.schema, op.table)} "
            f"ADD CONSTRAINT {quote_identifier(op.name)} UNIQUE ({_column_list(op.columns)});"
        )

    def build_add_check(self, op: AddCheck) -> str:
        return (
            f"ALTER TABLE {_qualified(op.schema, op.table)} "
            f"ADD CONSTRAINT {quote_identifier(op.name)} CHECK ({op.expression});"
        )

    def build_create_index(self, op: CreateIndex) -> str:
        unique = "UNIQUE " if op.is_unique else ""
        return (
            f"CREATE {unique}INDEX {quote_identifier(op.name)} "
            f"ON {_qualified(op.schema, op.table)} ({_column_list(op.columns)});"
        )

    def build_add_foreign_key(self, op: AddForeignKey) -> str:
        lines = [
            f"ALTER TABLE {_qualified(op.schema, op.table)}",
            f"ADD CONSTRAINT {quote_identifier(op.name)}",
            f"FOREIGN KEY ({_column_list(op.columns)})",
            f"REFERENCES {_qualified(op.ref_schema, op.ref_table)} "
            f"({_column_list(op.ref_columns)})",
        ]
        if op.on_delete in _ACTION_SQL:
            lines.append(f"ON DELETE {_ACTION_SQL[op.on_delete]}")
        if op.on_update in _ACTION_SQL:
            lines.append(f"ON UPDATE {_ACTION_SQL[op.on_update]}")
        return "\n".join(lines) + ";"

    def _drop_constraint(self, op) -> list[str]:
        return [
            f"ALTER TABLE {_qualified(op.schema, op.table)} "
            f"DROP CONSTRAINT {quote_identifier(op.name)};"
        ]

    @staticmethod
    def _routine_keyword(kind: RoutineKind) -> str:
        return "PROCEDURE" if kind == RoutineKind.PROCEDURE else "FUNCTION"
