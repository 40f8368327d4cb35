"""Operation accumulator handed to ``BaseMigration.up`` / ``down``.

The builder executes nothing. Each method appends one operation to an
ordered list; the order is preserved all the way to SQL generation.

Example:
    class CreateUsers(BaseMigration):
        id = "20251225_090000"
        name = "CreateUsers"

        def up(self, mb: MigrationBuilder) -> None:
            t = mb.create_table("dbo", "Users")
            t.add_column("Id", GuidType(), nullable=False)
            t.set_primary_key("PK_Users", ["Id"])
            mb.create_or_alter_view("dbo", "vw_Users", "CREATE OR ALTER VIEW ...")
"""

from typing import Optional

from .operations import (
    AddCheck,
    AddColumn,
    AddForeignKey,
    AddPrimaryKey,
    AddUnique,
    ColumnType,
    CreateIndex,
    CreateOrAlterRoutine,
    CreateOrAlterTrigger,
    CreateOrAlterView,
    CreateTable,
    DefaultValue,
    DropCheck,
    DropColumn,
    DropForeignKey,
    DropIndex,
    DropPrimaryKey,
    DropRoutine,
    DropTable,
    DropTrigger,
    DropUnique,
    DropView,
    MigrationOperation,
    ReferentialAction,
    RoutineKind,
    SqlOperation,
)


class MigrationBuilder:
    """Accumulates migration operations in insertion order."""

    def __init__(self):
        self._operations: list[MigrationOperation] = []

    @property
    def operations(self) -> tuple[MigrationOperation, ...]:
        """Recorded operations, in the order they were added."""
        return tuple(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def add(self, operation: MigrationOperation) -> MigrationOperation:
        """Append an already-built operation."""
        self._operations.append(operation)
        return operation

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def create_table(self, schema: str, name: str) -> CreateTable:
        """Record a CREATE TABLE and return it for further configuration."""
        op = CreateTable(schema, name)
        self._operations.append(op)
        return op

    def drop_table(self, schema: str, name: str) -> None:
        self._operations.append(DropTable(schema, name))

    def add_column(
        self,
        schema: str,
        table: str,
        name: str,
        type: ColumnType,
        nullable: bool = True,
        default_value: DefaultValue = None,
        is_incremental_key: bool = False,
        sequence_name: Optional[str] = None,
    ) -> None:
        self._operations.append(
            AddColumn(
                schema,
                table,
                name,
                type,
                nullable=nullable,
                default_value=default_value,
                is_incremental_key=is_incremental_key,
                sequence_name=sequence_name,
            )
        )

    def drop_column(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropColumn(schema, table, name))

    # ------------------------------------------------------------------
    # Keys, constraints and indexes
    # ------------------------------------------------------------------

    def add_primary_key(self, schema: str, table: str, name: str, columns: list[str]) -> None:
        self._operations.append(AddPrimaryKey(schema, table, name, tuple(columns)))

    def drop_primary_key(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropPrimaryKey(schema, table, name))

    def add_unique(self, schema: str, table: str, name: str, columns: list[str]) -> None:
        self._operations.append(AddUnique(schema, table, name, tuple(columns)))

    def drop_unique(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropUnique(schema, table, name))

    def add_check(self, schema: str, table: str, name: str, expression: str) -> None:
        self._operations.append(AddCheck(schema, table, name, expression))

    def drop_check(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropCheck(schema, table, name))

    def create_index(
        self,
        schema: str,
        table: str,
        name: str,
        columns: list[str],
        is_unique: bool = False,
    ) -> None:
        self._operations.append(CreateIndex(schema, table, name, tuple(columns), is_unique))

    def drop_index(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropIndex(schema, table, name))

    def add_foreign_key(
        self,
        schema: str,
        table: str,
        name: str,
        columns: list[str],
        ref_schema: str,
        ref_table: str,
        ref_columns: list[str],
        on_delete: ReferentialAction = ReferentialAction.NO_ACTION,
        on_update: ReferentialAction = ReferentialAction.NO_ACTION,
    ) -> None:
        self._operations.append(
            AddForeignKey(
                schema,
                table,
                name,
                tuple(columns),
                ref_schema,
                ref_table,
                tuple(ref_columns),
                on_delete,
                on_update,
            )
        )

    def drop_foreign_key(self, schema: str, table: str, name: str) -> None:
        self._operations.append(DropForeignKey(schema, table, name))

    def sql(self, sql: str) -> None:
        """Record raw SQL, executed as-is by the provider."""
        self._operations.append(SqlOperation(sql))

    # ------------------------------------------------------------------
    # Views, routines and triggers
    # ------------------------------------------------------------------

    def create_or_alter_view(self, schema: str, name: str, sql: str) -> None:
        self._operations.append(CreateOrAlterView(schema, name, sql))

    def drop_view(self, schema: str, name: str) -> None:
        self._operations.append(DropView(schema, name))

    def create_or_alter_procedure(self, schema: str, name: str, sql: str) -> None:
        self._operations.append(CreateOrAlterRoutine(schema, name, RoutineKind.PROCEDURE, sql))

    def create_or_alter_scalar_function(self, schema: str, name: str, sql: str) -> None:
        self._operations.append(
            CreateOrAlterRoutine(schema, name, RoutineKind.SCALAR_FUNCTION, sql)
        )

    def create_or_alter_table_function(self, schema: str, name: str, sql: str) -> None:
        self._operations.append(
            CreateOrAlterRoutine(schema, name, RoutineKind.TABLE_FUNCTION, sql)
        )

    def drop_routine(self, schema: str, name: str, kind: RoutineKind) -> None:
        self._operations.append(DropRoutine(schema, name, kind))

    def create_or_alter_trigger(self, schema: str, name: str, sql: str) -> None:
        self._operations.append(CreateOrAlterTrigger(schema, name, sql))

    def drop_trigger(self, schema: str, name: str) -> None:
        self._operations.append(DropTrigger(schema, name))
