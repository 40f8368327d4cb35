"""Tests for the migration scaffolder."""

import re
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from sqlshift.builder import MigrationBuilder
from sqlshift.migrations.base import MigrationError
from sqlshift.migrations.registry import discover_migrations
from sqlshift.operations import (
    CreateOrAlterRoutine,
    CreateOrAlterTrigger,
    CreateOrAlterView,
    DecimalType,
    GuidType,
    Int32Type,
    ReferentialAction,
    RoutineKind,
    SqlOperation,
    StringType,
)
from sqlshift.scaffold import MigrationScaffolder, sanitize_name

FIXED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
BUILDER_CALL = re.compile(r"^\s+(?:\w+ = )?mb\.", re.MULTILINE)


@pytest.fixture
def scaffolder():
    return MigrationScaffolder(clock=lambda: FIXED)


def programmable_ops():
    return [
        CreateOrAlterView("dbo", "vw_Users", "CREATE OR ALTER VIEW dbo.vw_Users\nAS\nSELECT 1 AS X"),
        CreateOrAlterRoutine("dbo", "sp_Ping", RoutineKind.PROCEDURE, "CREATE OR ALTER PROCEDURE dbo.sp_Ping AS SELECT 'pong'"),
        CreateOrAlterRoutine("dbo", "fn_One", RoutineKind.SCALAR_FUNCTION, "CREATE OR ALTER FUNCTION dbo.fn_One() RETURNS INT AS BEGIN RETURN 1 END"),
        CreateOrAlterTrigger("dbo", "trg_Audit", 'CREATE OR ALTER TRIGGER dbo.trg_Audit ON dbo.T AFTER INSERT AS SELECT "x"'),
    ]


class TestSanitizeName:
    def test_keeps_letters_and_digits(self):
        """Separators and punctuation are removed."""
        assert sanitize_name("Add users-table v2!") == "Adduserstablev2"

    def test_empty_falls_back(self):
        """Nothing usable gives the default name."""
        assert sanitize_name("  --  ") == "Migration"


class TestMigrationScaffolder:
    def test_file_name_and_id(self, scaffolder, tmp_path):
        """File is <yyyyMMdd_HHmmss>_<Name>.py and the id is the timestamp."""
        result = scaffolder.scaffold(tmp_path, "Add Ping", programmable_ops())

        assert result.id == "20240102_030405"
        assert result.path == tmp_path / "20240102_030405_AddPing.py"
        assert result.class_name == "Migration_20240102_030405_AddPing"
        assert result.operations_count == 4
        assert result.path.exists()

    def test_one_builder_call_per_operation(self, scaffolder, tmp_path):
        """up() holds exactly N builder calls, in input order."""
        source = scaffolder.scaffold(tmp_path, "Ops", programmable_ops()).path.read_text(encoding="utf-8")
        up_body = source.split("def up(")[1].split("def down(")[0]

        calls = BUILDER_CALL.findall(up_body)
        assert len(calls) == 4
        methods = re.findall(r"mb\.(\w+)\(", up_body)
        assert methods == [
            "create_or_alter_view",
            "create_or_alter_procedure",
            "create_or_alter_scalar_function",
            "create_or_alter_trigger",
        ]

    def test_down_never_drops(self, scaffolder, tmp_path):
        """down() is a no-op with an explanatory comment."""
        source = scaffolder.scaffold(tmp_path, "Ops", programmable_ops()).path.read_text(encoding="utf-8")
        down_body = source.split("def down(")[1]

        assert "mb." not in down_body
        assert "never dropped automatically" in down_body

    def test_empty_operations_render_pass(self, scaffolder):
        """No operations still yields a valid up()."""
        source = scaffolder.render("20240102_030405", "Empty", [], FIXED)
        up_body = source.split("def up(")[1].split("def down(")[0]
        assert up_body.strip().endswith("pass")

    def test_id_collision_raises(self, scaffolder, tmp_path):
        """A second scaffold in the same second is refused."""
        scaffolder.scaffold(tmp_path, "First", [SqlOperation("SELECT 1")])

        with pytest.raises(MigrationError, match="already used"):
            scaffolder.scaffold(tmp_path, "Second", [SqlOperation("SELECT 2")])

        assert len(list(tmp_path.glob("*.py"))) == 1

    def test_generated_file_loads_and_reproduces_operations(self, scaffolder, tmp_path):
        """Discovering the generated file yields the same operations."""
        ops = programmable_ops() + [SqlOperation('PRINT N\'back\\slash\'; -- """ quoted')]
        scaffolder.scaffold(tmp_path, "Roundtrip", ops)

        registry = discover_migrations(tmp_path)

        assert registry.get_ids() == ["20240102_030405"]
        migration = registry.get("20240102_030405")
        assert migration.name == "Roundtrip"
        assert list(migration.build_up()) == ops
        assert migration.build_down() == ()

    def test_table_operations_reproduce(self, scaffolder, tmp_path):
        """Tables, enums, defaults and column types survive rendering."""
        mb = MigrationBuilder()
        t = mb.create_table("sales", "Orders")
        t.add_column("Id", Int32Type(), nullable=False, is_incremental_key=True)
        t.add_column("CustomerId", GuidType(), nullable=False)
        t.add_column("Total", DecimalType(10, 4), default_value=0)
        t.add_column("Note", StringType(max_length=200, unicode=False))
        t.add_column("PlacedAt", StringType(), default_value=datetime(2024, 1, 1, 12, 0))
        t.set_primary_key("PK_Orders", ["Id"])
        t.add_unique("UQ_Orders_Note", ["Note"])
        t.add_check("CK_Orders_Total", "[Total] >= 0")
        t.add_index("IX_Orders_Customer", ["CustomerId"], is_unique=False)
        t.add_foreign_key(
            "FK_Orders_Customers", ["CustomerId"], "sales", "Customers", ["Id"],
            on_delete=ReferentialAction.CASCADE,
        )
        mb.create_index("sales", "Orders", "IX_Orders_Total", ["Total"], is_unique=True)
        mb.drop_routine("dbo", "sp_Old", RoutineKind.PROCEDURE)
        ops = list(mb.operations)

        path = scaffolder.scaffold(tmp_path, "Tables", ops).path
        source = path.read_text(encoding="utf-8")
        migration = discover_migrations(tmp_path).get("20240102_030405")

        assert list(migration.build_up()) == ops
        assert len(BUILDER_CALL.findall(source.split("def down(")[0])) == 3
        assert "import datetime" in source

    @pytest.mark.parametrize(
        "default",
        [
            True,
            42,
            1.25,
            Decimal("1.50"),
            "O'Brien",
            date(2024, 1, 1),
            datetime(2024, 1, 1, 12, 30, 15, 250000),
        ],
        ids=["bool", "int", "float", "decimal", "str", "date", "datetime"],
    )
    def test_default_values_load_back(self, scaffolder, tmp_path, default):
        """Every supported default value builds again from the generated file."""
        mb = MigrationBuilder()
        mb.add_column("dbo", "Prices", "Amount", DecimalType(), default_value=default)
        ops = list(mb.operations)

        scaffolder.scaffold(tmp_path, "Defaults", ops)
        migration = discover_migrations(tmp_path).get("20240102_030405")

        rebuilt = migration.build_up()
        assert list(rebuilt) == ops
        assert type(rebuilt[0].default_value) is type(default)

    def test_unsupported_default_value_raises(self, scaffolder, tmp_path):
        """Defaults that have no Python literal are rejected before writing."""
        mb = MigrationBuilder()
        mb.add_column("dbo", "T", "C", StringType(), default_value=object())

        with pytest.raises(MigrationError, match="Cannot scaffold default value"):
            scaffolder.scaffold(tmp_path, "Bad", list(mb.operations))

        assert list(tmp_path.glob("*.py")) == []

    def test_scaffold_to_file_returns_path(self, scaffolder, tmp_path):
        """Convenience wrapper returns the written path."""
        path = scaffolder.scaffold_to_file(tmp_path / "new", "X", [])
        assert path.parent == tmp_path / "new"
        assert path.exists()
