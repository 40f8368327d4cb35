"""Scaffolding of migration files from operations.

Renders a list of operations as a new Python migration module:

    migrations/20251225_004330_AddPingProc.py

    class Migration_20251225_004330_AddPingProc(BaseMigration):
        id = "20251225_004330"
        name = "AddPingProc"

        def up(self, mb: MigrationBuilder) -> None:
            mb.create_or_alter_procedure("dbo", "sp_Ping", \"\"\"CREATE OR ALTER ...\"\"\")

        def down(self, mb: MigrationBuilder) -> None:
            # Programmable objects are never dropped automatically
            pass

``up`` holds exactly one ``mb.`` call per operation, in input order.
"""

import dataclasses
import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from .migrations.base import MigrationError
from .operations import (
    AddColumn,
    ColumnType,
    CreateTable,
    MigrationOperation,
    OperationKind,
    ReferentialAction,
    RoutineKind,
)
from .tooling.fileio import atomic_write_text

logger = logging.getLogger(__name__)

MIGRATION_ID_FORMAT = "%Y%m%d_%H%M%S"
DEFAULT_MIGRATION_NAME = "Migration"
INDENT = " " * 8


@dataclass(frozen=True)
class ScaffoldedMigration:
    """A migration file written by the scaffolder."""

    id: str
    name: str
    class_name: str
    path: Path
    operations_count: int


def sanitize_name(name: str) -> str:
    """Keep letters and digits only; fall back to ``Migration``."""
    cleaned = "".join(c for c in name if c.isalnum() and ("_" + c).isidentifier())
    return cleaned or DEFAULT_MIGRATION_NAME


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Literal rendering
# ============================================================================


def _str_literal(value: str) -> str:
    # JSON string syntax is a valid Python string literal
    return json.dumps(value, ensure_ascii=False)


def _sql_literal(sql: str) -> str:
    """Triple-quoted literal when it round-trips exactly, else an escaped one."""
    safe = (
        '"""' not in sql
        and "\\" not in sql
        and not sql.endswith('"')
        and all(c.isprintable() or c in "\n\t" for c in sql)
    )
    if safe:
        return f'"""{sql}"""'
    return _str_literal(sql)


def _list_literal(values: Sequence[str]) -> str:
    return "[" + ", ".join(_str_literal(v) for v in values) + "]"


class _Renderer:
    """Renders operations as builder calls and tracks the names they need."""

    def __init__(self):
        self.operation_imports: set[str] = set()
        self.needs_datetime = False
        self.needs_decimal = False

    def value(self, value: Any) -> str:
        """Python literal for a column default value."""
        if isinstance(value, (date, datetime)):
            self.needs_datetime = True
            return repr(value)
        if isinstance(value, Decimal):
            self.needs_decimal = True
            return repr(value)
        if isinstance(value, str):
            return _str_literal(value)
        if value is None or isinstance(value, (bool, int, float)):
            return repr(value)
        raise MigrationError(f"Cannot scaffold default value of type {type(value).__name__}")

    def column_type(self, column_type: ColumnType) -> str:
        cls = type(column_type)
        self.operation_imports.add(cls.__name__)
        args = []
        for f in dataclasses.fields(column_type):
            current = getattr(column_type, f.name)
            if current != f.default:
                args.append(f"{f.name}={current!r}")
        return f"{cls.__name__}({', '.join(args)})"

    def action(self, action: ReferentialAction) -> str:
        self.operation_imports.add("ReferentialAction")
        return f"ReferentialAction.{ReferentialAction(action).name}"

    def routine_kind(self, kind: RoutineKind) -> str:
        self.operation_imports.add("RoutineKind")
        return f"RoutineKind.{RoutineKind(kind).name}"

    def column_args(self, op: AddColumn) -> list[str]:
        args = [_str_literal(op.name), self.column_type(op.type)]
        if not op.nullable:
            args.append("nullable=False")
        if op.default_value is not None:
            args.append(f"default_value={self.value(op.default_value)}")
        if op.is_incremental_key:
            args.append("is_incremental_key=True")
        if op.sequence_name is not None:
            args.append(f"sequence_name={_str_literal(op.sequence_name)}")
        return args

    def fk_args(self, op) -> list[str]:
        args = [
            _str_literal(op.name),
            _list_literal(op.columns),
            _str_literal(op.ref_schema),
            _str_literal(op.ref_table),
            _list_literal(op.ref_columns),
        ]
        if op.on_delete != ReferentialAction.NO_ACTION:
            args.append(f"on_delete={self.action(op.on_delete)}")
        if op.on_update != ReferentialAction.NO_ACTION:
            args.append(f"on_update={self.action(op.on_update)}")
        return args

    def render(self, op: MigrationOperation) -> list[str]:
        """Source lines (unindented) for one operation."""
        handler = _HANDLERS.get(op.kind)
        if handler is None:
            raise MigrationError(f"Cannot scaffold operation kind {op.kind!r}")
        return handler(self, op)


def _call(method: str, *args: str) -> list[str]:
    return [f"mb.{method}({', '.join(args)})"]


def _target(op) -> tuple[str, ...]:
    """Schema, table and object name literals of a table-level operation."""
    return _str_literal(op.schema), _str_literal(op.table), _str_literal(op.name)


def _render_create_table(r: _Renderer, op: CreateTable) -> list[str]:
    lines = [f"table = mb.create_table({_str_literal(op.schema)}, {_str_literal(op.name)})"]
    for column in op.columns:
        lines.append(f"table.add_column({', '.join(r.column_args(column))})")
    if op.primary_key is not None:
        pk = op.primary_key
        lines.append(
            f"table.set_primary_key({_str_literal(pk.name)}, {_list_literal(pk.columns)})"
        )
    for unique in op.uniques:
        lines.append(
            f"table.add_unique({_str_literal(unique.name)}, {_list_literal(unique.columns)})"
        )
    for check in op.checks:
        lines.append(
            f"table.add_check({_str_literal(check.name)}, {_sql_literal(check.expression)})"
        )
    for index in op.indexes:
        unique_arg = ", is_unique=True" if index.is_unique else ""
        lines.append(
            f"table.add_index({_str_literal(index.name)}, "
            f"{_list_literal(index.columns)}{unique_arg})"
        )
    for fk in op.foreign_keys:
        lines.append(f"table.add_foreign_key({', '.join(r.fk_args(fk))})")
    return lines


def _render_routine(r: _Renderer, op) -> list[str]:
    method = {
        RoutineKind.PROCEDURE: "create_or_alter_procedure",
        RoutineKind.SCALAR_FUNCTION: "create_or_alter_scalar_function",
        RoutineKind.TABLE_FUNCTION: "create_or_alter_table_function",
    }[RoutineKind(op.routine_kind)]
    return _call(method, _str_literal(op.schema), _str_literal(op.name), _sql_literal(op.definition_sql))


_HANDLERS: dict[OperationKind, Callable[[_Renderer, Any], list[str]]] = {
    OperationKind.SQL: lambda r, op: _call("sql", _sql_literal(op.sql)),
    OperationKind.CREATE_TABLE: _render_create_table,
    OperationKind.DROP_TABLE: lambda r, op: _call(
        "drop_table", _str_literal(op.schema), _str_literal(op.name)
    ),
    OperationKind.ADD_COLUMN: lambda r, op: _call(
        "add_column", _str_literal(op.schema), _str_literal(op.table), *r.column_args(op)
    ),
    OperationKind.DROP_COLUMN: lambda r, op: _call("drop_column", *_target(op)),
    OperationKind.ADD_PRIMARY_KEY: lambda r, op: _call(
        "add_primary_key", *_target(op), _list_literal(op.columns)
    ),
    OperationKind.DROP_PRIMARY_KEY: lambda r, op: _call("drop_primary_key", *_target(op)),
    OperationKind.ADD_UNIQUE: lambda r, op: _call(
        "add_unique", *_target(op), _list_literal(op.columns)
    ),
    OperationKind.DROP_UNIQUE: lambda r, op: _call("drop_unique", *_target(op)),
    OperationKind.ADD_CHECK: lambda r, op: _call(
        "add_check", *_target(op), _sql_literal(op.expression)
    ),
    OperationKind.DROP_CHECK: lambda r, op: _call("drop_check", *_target(op)),
    OperationKind.CREATE_INDEX: lambda r, op: _call(
        "create_index",
        *_target(op),
        _list_literal(op.columns),
        *(["is_unique=True"] if op.is_unique else []),
    ),
    OperationKind.DROP_INDEX: lambda r, op: _call("drop_index", *_target(op)),
    OperationKind.ADD_FOREIGN_KEY: lambda r, op: _call(
        "add_foreign_key", _str_literal(op.schema), _str_literal(op.table), *r.fk_args(op)
    ),
    OperationKind.DROP_FOREIGN_KEY: lambda r, op: _call("drop_foreign_key", *_target(op)),
    OperationKind.CREATE_OR_ALTER_VIEW: lambda r, op: _call(
        "create_or_alter_view",
        _str_literal(op.schema),
        _str_literal(op.name),
        _sql_literal(op.definition_sql),
    ),
    OperationKind.DROP_VIEW: lambda r, op: _call(
        "drop_view", _str_literal(op.schema), _str_literal(op.name)
    ),
    OperationKind.CREATE_OR_ALTER_ROUTINE: _render_routine,
    OperationKind.DROP_ROUTINE: lambda r, op: _call(
        "drop_routine",
        _str_literal(op.schema),
        _str_literal(op.name),
        r.routine_kind(op.routine_kind),
    ),
    OperationKind.CREATE_OR_ALTER_TRIGGER: lambda r, op: _call(
        "create_or_alter_trigger",
        _str_literal(op.schema),
        _str_literal(op.name),
        _sql_literal(op.definition_sql),
    ),
    OperationKind.DROP_TRIGGER: lambda r, op: _call(
        "drop_trigger", _str_literal(op.schema), _str_literal(op.name)
    ),
}


# ============================================================================
# Scaffolder
# ============================================================================


class MigrationScaffolder:
    """Writes new timestamped migration files.

    Args:
        clock: Source of the current UTC time (used for the migration id)
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    def render(
        self,
        migration_id: str,
        migration_name: str,
        operations: Sequence[MigrationOperation],
        created_at: datetime,
    ) -> str:
        """Render the source of a migration module."""
        sanitized = sanitize_name(migration_name)
        display_name = migration_name.strip() or sanitized
        class_name = f"Migration_{migration_id}_{sanitized}"

        renderer = _Renderer()
        body: list[str] = []
        for op in operations:
            body.extend(INDENT + line for line in renderer.render(op))
        if not body:
            body.append(INDENT + "pass")

        lines = [
            f'"""Migration {migration_id}: {sanitized}.',
            "",
            f"Generated by sqlshift at {created_at.strftime('%Y-%m-%d %H:%M:%S')} UTC.",
            '"""',
            "",
        ]
        if renderer.needs_datetime:
            lines.append("import datetime")
        if renderer.needs_decimal:
            lines.append("from decimal import Decimal")
        if renderer.needs_datetime or renderer.needs_decimal:
            lines.append("")
        lines.append("from sqlshift import BaseMigration, MigrationBuilder")
        if renderer.operation_imports:
            lines.append(
                f"from sqlshift.operations import {', '.join(sorted(renderer.operation_imports))}"
            )
        lines.extend(
            [
                "",
                "",
                f"class {class_name}(BaseMigration):",
                f"    id = {_str_literal(migration_id)}",
                f"    name = {_str_literal(display_name)}",
                "",
                "    def up(self, mb: MigrationBuilder) -> None:",
                *body,
                "",
                "    def down(self, mb: MigrationBuilder) -> None:",
                f"{INDENT}# Programmable objects are never dropped automatically",
                f"{INDENT}pass",
                "",
            ]
        )
        return "\n".join(lines)

    def scaffold(
        self,
        output_dir: Path,
        migration_name: str,
        operations: Sequence[MigrationOperation],
    ) -> ScaffoldedMigration:
        """Write a new migration file for ``operations``.

        Args:
            output_dir: Migrations directory (created if missing)
            migration_name: Human label, sanitized for file and class names
            operations: Operations for ``up``, in order

        Returns:
            Details of the written migration

        Raises:
            MigrationError: If a migration with the same id already exists
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        now = self._clock()
        migration_id = now.strftime(MIGRATION_ID_FORMAT)
        sanitized = sanitize_name(migration_name)

        existing = sorted(output_dir.glob(f"{migration_id}_*.py"))
        if existing:
            raise MigrationError(
                f"Migration id {migration_id} already used by {existing[0].name}; "
                "wait a second and retry"
            )

        path = output_dir / f"{migration_id}_{sanitized}.py"
        source = self.render(migration_id, migration_name, operations, now)
        atomic_write_text(path, source)

        logger.info(f"Scaffolded migration {path.name} with {len(operations)} operation(s)")
        return ScaffoldedMigration(
            id=migration_id,
            name=migration_name.strip() or sanitized,
            class_name=f"Migration_{migration_id}_{sanitized}",
            path=path,
            operations_count=len(operations),
        )

    def scaffold_to_file(
        self,
        output_dir: Path,
        migration_name: str,
        operations: Sequence[MigrationOperation],
    ) -> Path:
        """Write a new migration file and return its path."""
        return self.scaffold(output_dir, migration_name, operations).path
