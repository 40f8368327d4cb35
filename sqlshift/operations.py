"""Engine-neutral schema operations.

A migration never executes SQL directly. It records a sequence of
operations through ``MigrationBuilder`` and a provider (see
``sqlshift.sqlserver``) translates them into executable batches.

Every operation class carries a class-level ``kind`` which is the single
dispatch key used by SQL generators and the scaffolder.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, ClassVar, Optional, Union

# ============================================================================
# Column types
# ============================================================================


@dataclass(frozen=True)
class ColumnType:
    """Base class for logical (provider independent) column types."""


@dataclass(frozen=True)
class Int32Type(ColumnType):
    pass


@dataclass(frozen=True)
class Int64Type(ColumnType):
    pass


@dataclass(frozen=True)
class BoolType(ColumnType):
    pass


@dataclass(frozen=True)
class DateTimeType(ColumnType):
    pass


@dataclass(frozen=True)
class DateTimeOffsetType(ColumnType):
    pass


@dataclass(frozen=True)
class GuidType(ColumnType):
    pass


@dataclass(frozen=True)
class DecimalType(ColumnType):
    precision: int = 18
    scale: int = 2


@dataclass(frozen=True)
class DoubleType(ColumnType):
    pass


@dataclass(frozen=True)
class StringType(ColumnType):
    """Text column. ``max_length=None`` means unbounded."""

    max_length: Optional[int] = None
    unicode: bool = True


@dataclass(frozen=True)
class BytesType(ColumnType):
    max_length: Optional[int] = None


@dataclass(frozen=True)
class JsonType(ColumnType):
    pass


# ============================================================================
# Enums
# ============================================================================


class ReferentialAction(IntEnum):
    """Foreign key ON DELETE / ON UPDATE behavior."""

    NO_ACTION = 0
    RESTRICT = 1
    CASCADE = 2
    SET_NULL = 3
    SET_DEFAULT = 4


class RoutineKind(IntEnum):
    """Kind of routine for create-or-alter/drop routine operations."""

    PROCEDURE = 0
    SCALAR_FUNCTION = 1
    TABLE_FUNCTION = 2


class OperationKind(str, Enum):
    """Closed set of operation variants."""

    SQL = "sql"
    CREATE_TABLE = "create_table"
    DROP_TABLE = "drop_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    ADD_PRIMARY_KEY = "add_primary_key"
    DROP_PRIMARY_KEY = "drop_primary_key"
    ADD_UNIQUE = "add_unique"
    DROP_UNIQUE = "drop_unique"
    ADD_CHECK = "add_check"
    DROP_CHECK = "drop_check"
    CREATE_INDEX = "create_index"
    DROP_INDEX = "drop_index"
    ADD_FOREIGN_KEY = "add_foreign_key"
    DROP_FOREIGN_KEY = "drop_foreign_key"
    CREATE_OR_ALTER_VIEW = "create_or_alter_view"
    DROP_VIEW = "drop_view"
    CREATE_OR_ALTER_ROUTINE = "create_or_alter_routine"
    DROP_ROUTINE = "drop_routine"
    CREATE_OR_ALTER_TRIGGER = "create_or_alter_trigger"
    DROP_TRIGGER = "drop_trigger"


DefaultValue = Union[None, bool, int, float, Decimal, str, date, datetime]


# ============================================================================
# Operations
# ============================================================================


class MigrationOperation:
    """Base class for all migration operations."""

    kind: ClassVar[OperationKind]


@dataclass(frozen=True)
class SqlOperation(MigrationOperation):
    """Raw SQL executed verbatim by the provider.

    Escape hatch for changes that are not modeled as typed operations.
    Keep engine-specific SQL inside migrations for that same engine.
    """

    kind: ClassVar[OperationKind] = OperationKind.SQL

    sql: str


@dataclass(frozen=True)
class DropTable(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_TABLE

    schema: str
    name: str


@dataclass(frozen=True)
class AddColumn(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.ADD_COLUMN

    schema: str
    table: str
    name: str
    type: ColumnType
    nullable: bool = True
    default_value: DefaultValue = None
    is_incremental_key: bool = False
    sequence_name: Optional[str] = None


@dataclass(frozen=True)
class DropColumn(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_COLUMN

    schema: str
    table: str
    name: str


@dataclass(frozen=True)
class AddPrimaryKey(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.ADD_PRIMARY_KEY

    schema: str
    table: str
    name: str
    columns: tuple[str, ...]


@dataclass(frozen=True)
class DropPrimaryKey(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_PRIMARY_KEY

    schema: str
    table: str
    name: str


@dataclass(frozen=True)
class AddUnique(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.ADD_UNIQUE

    schema: str
    table: str
    name: str
    columns: tuple[str, ...]


@dataclass(frozen=True)
class DropUnique(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_UNIQUE

    schema: str
    table: str
    name: str


@dataclass(frozen=True)
class AddCheck(MigrationOperation):
    """CHECK constraint. ``expression`` is used verbatim."""

    kind: ClassVar[OperationKind] = OperationKind.ADD_CHECK

    schema: str
    table: str
    name: str
    expression: str


@dataclass(frozen=True)
class DropCheck(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_CHECK

    schema: str
    table: str
    name: str


@dataclass(frozen=True)
class CreateIndex(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.CREATE_INDEX

    schema: str
    table: str
    name: str
    columns: tuple[str, ...]
    is_unique: bool = False


@dataclass(frozen=True)
class DropIndex(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_INDEX

    schema: str
    table: str
    name: str


@dataclass(frozen=True)
class AddForeignKey(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.ADD_FOREIGN_KEY

    schema: str
    table: str
    name: str
    columns: tuple[str, ...]
    ref_schema: str
    ref_table: str
    ref_columns: tuple[str, ...]
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION
    on_update: ReferentialAction = ReferentialAction.NO_ACTION


@dataclass(frozen=True)
class DropForeignKey(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_FOREIGN_KEY

    schema: str
    table: str
    name: str


@dataclass
class CreateTable(MigrationOperation):
    """Create a table together with its columns and constraints.

    This is the only mutable operation: ``MigrationBuilder.create_table``
    returns it so the caller can attach columns, keys, indexes and foreign
    keys before the migration's ``up`` returns. No validation happens here
    (duplicate column names are left for the database to reject).
    """

    kind: ClassVar[OperationKind] = OperationKind.CREATE_TABLE

    schema: str
    name: str
    columns: list[AddColumn] = field(default_factory=list)
    primary_key: Optional[AddPrimaryKey] = None
    uniques: list[AddUnique] = field(default_factory=list)
    checks: list[AddCheck] = field(default_factory=list)
    indexes: list[CreateIndex] = field(default_factory=list)
    foreign_keys: list[AddForeignKey] = field(default_factory=list)

    def add_column(
        self,
        name: str,
        type: ColumnType,
        nullable: bool = True,
        default_value: DefaultValue = None,
        is_incremental_key: bool = False,
        sequence_name: Optional[str] = None,
    ) -> "CreateTable":
        self.columns.append(
            AddColumn(
                self.schema,
                self.name,
                name,
                type,
                nullable=nullable,
                default_value=default_value,
                is_incremental_key=is_incremental_key,
                sequence_name=sequence_name,
            )
        )
        return self

    def set_primary_key(self, name: str, columns: list[str]) -> "CreateTable":
        self.primary_key = AddPrimaryKey(self.schema, self.name, name, tuple(columns))
        return self

    def add_unique(self, name: str, columns: list[str]) -> "CreateTable":
        self.uniques.append(AddUnique(self.schema, self.name, name, tuple(columns)))
        return self

    def add_check(self, name: str, expression: str) -> "CreateTable":
        self.checks.append(AddCheck(self.schema, self.name, name, expression))
        return self

    def add_index(self, name: str, columns: list[str], is_unique: bool = False) -> "CreateTable":
        self.indexes.append(CreateIndex(self.schema, self.name, name, tuple(columns), is_unique))
        return self

    def add_foreign_key(
        self,
        name: str,
        columns: list[str],
        ref_schema: str,
        ref_table: str,
        ref_columns: list[str],
        on_delete: ReferentialAction = ReferentialAction.NO_ACTION,
        on_update: ReferentialAction = ReferentialAction.NO_ACTION,
    ) -> "CreateTable":
        self.foreign_keys.append(
            AddForeignKey(
                self.schema,
                self.name,
                name,
                tuple(columns),
                ref_schema,
                ref_table,
                tuple(ref_columns),
                on_delete,
                on_update,
            )
        )
        return self


# ============================================================================
# Programmable objects
# ============================================================================


@dataclass(frozen=True)
class CreateOrAlterView(MigrationOperation):
    """Create or alter a view from its full definition script.

    The provider decides whether it relies on ``CREATE OR ALTER`` in the
    script itself or emits conditional DDL.
    """

    kind: ClassVar[OperationKind] = OperationKind.CREATE_OR_ALTER_VIEW

    schema: str
    name: str
    definition_sql: str


@dataclass(frozen=True)
class DropView(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_VIEW

    schema: str
    name: str


@dataclass(frozen=True)
class CreateOrAlterRoutine(MigrationOperation):
    """Create or alter a procedure or function.

    ``routine_kind`` selects PROCEDURE / FUNCTION in the final DDL.
    """

    kind: ClassVar[OperationKind] = OperationKind.CREATE_OR_ALTER_ROUTINE

    schema: str
    name: str
    routine_kind: RoutineKind
    definition_sql: str


@dataclass(frozen=True)
class DropRoutine(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_ROUTINE

    schema: str
    name: str
    routine_kind: RoutineKind


@dataclass(frozen=True)
class CreateOrAlterTrigger(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.CREATE_OR_ALTER_TRIGGER

    schema: str
    name: str
    definition_sql: str


@dataclass(frozen=True)
class DropTrigger(MigrationOperation):
    kind: ClassVar[OperationKind] = OperationKind.DROP_TRIGGER

    schema: str
    name: str


def describe(operation: MigrationOperation) -> str:
    """Short human-readable label for logs and CLI output."""
    schema: Any = getattr(operation, "schema", None)
    name: Any = getattr(operation, "name", None)
    table: Any = getattr(operation, "table", None)
    if schema is None:
        return operation.kind.value
    target = f"{schema}.{table}.{name}" if table else f"{schema}.{name}"
    return f"{operation.kind.value} {target}"
