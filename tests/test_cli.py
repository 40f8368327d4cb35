"""Tests for the sqlshift CLI."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from sqlshift.migrations.cli import create_parser, main
from sqlshift.migrations.runner import Migrator, MigratorOptions
from sqlshift.sqlserver.bootstrap import DatabaseEnsureResult, DatabaseEnsureStatus
from tests.helpers.fakes import (
    FakeExecutor,
    FakeHistory,
    FakeLockProvider,
    RecordingGenerator,
)

MIGRATION_SOURCE = '''
from sqlshift import BaseMigration, MigrationBuilder


class Migration_20240101_000000_Seed(BaseMigration):
    id = "20240101_000000"
    name = "Seed"

    def up(self, mb: MigrationBuilder) -> None:
        mb.sql("INSERT INTO dbo.T VALUES (1)")
'''


def run_cli(argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def project(tmp_path):
    (tmp_path / "pyproject.toml").write_text("")
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "20240101_000000_Seed.py").write_text(MIGRATION_SOURCE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def fake_db():
    """Patch the SQL Server wiring with recording fakes."""
    events: list = []
    history = FakeHistory(events)
    executor = FakeExecutor(events)
    lock_provider = FakeLockProvider(events)

    def build(session, config=None, transactional=False):
        return Migrator(
            RecordingGenerator(events),
            history,
            lock_provider,
            executor,
            options=MigratorOptions(transactional=transactional),
        )

    with patch("sqlshift.migrations.cli.SqlServerMigrationSession") as session_cls, \
            patch("sqlshift.migrations.cli.create_migrator", side_effect=build) as factory, \
            patch(
                "sqlshift.migrations.cli.ensure_database_exists",
                return_value=DatabaseEnsureResult(DatabaseEnsureStatus.ALREADY_EXISTS, "AppDb"),
            ) as ensure:
        yield SimpleNamespace(
            events=events,
            history=history,
            executor=executor,
            lock_provider=lock_provider,
            session_cls=session_cls,
            factory=factory,
            ensure=ensure,
        )


class TestParser:
    def test_prog_add_default_name(self):
        """prog add defaults the migration name."""
        args = create_parser().parse_args(["prog", "add"])
        assert args.name == "Programmables_Update"

    def test_db_update_flags(self):
        """db update accepts project, conn and transactional."""
        args = create_parser().parse_args(
            ["db", "update", "--project", "p", "--conn", "c", "--transactional"]
        )
        assert (args.project, args.conn, args.transactional) == ("p", "c", True)

    def test_command_required(self):
        """Running without a command is a usage error."""
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestInitAndProgAdd:
    def test_init_creates_layout(self, tmp_path, capsys):
        """init creates db_assets/ and migrations/."""
        assert run_cli(["init", "--root", str(tmp_path)]) == 0

        assert (tmp_path / "db_assets" / "views").is_dir()
        assert (tmp_path / "migrations" / "programmables.snapshot.json").exists()
        assert "Initialized" in capsys.readouterr().out

    def test_prog_add_scaffolds_then_reports_up_to_date(self, tmp_path, capsys):
        """First run writes a migration; the second finds no changes."""
        run_cli(["init", "--root", str(tmp_path)])
        (tmp_path / "db_assets" / "views" / "dbo.vw_A.sql").write_text(
            "CREATE OR ALTER VIEW dbo.vw_A AS SELECT 1", encoding="utf-8"
        )

        assert run_cli(["prog", "add", "--root", str(tmp_path), "--name", "AddA"]) == 0
        files = list((tmp_path / "migrations").glob("*_AddA.py"))
        assert len(files) == 1
        assert "Created migration" in capsys.readouterr().out

        assert run_cli(["prog", "add", "--root", str(tmp_path)]) == 0
        assert "Up to date" in capsys.readouterr().out
        assert len(list((tmp_path / "migrations").glob("*.py"))) == 1

    def test_prog_add_creates_layout_when_missing(self, tmp_path):
        """prog add works on a project that was never initialized."""
        assert run_cli(["prog", "add", "--root", str(tmp_path)]) == 0
        assert (tmp_path / "migrations" / "migrations.manifest.json").exists()


class TestDbCommands:
    def test_update_applies_pending(self, project, fake_db, capsys):
        """db update runs the discovered migration and records it."""
        code = run_cli(["db", "update", "--project", str(project), "--conn", "mssql+pyodbc://h/AppDb"])

        assert code == 0
        assert [row[0] for row in fake_db.history.inserted] == ["20240101_000000"]
        assert fake_db.executor.executed[0][0] == "INSERT INTO dbo.T VALUES (1)"
        fake_db.ensure.assert_called_once_with("mssql+pyodbc://h/AppDb")
        fake_db.session_cls.assert_called_once_with("mssql+pyodbc://h/AppDb")
        assert "Applied 1 migration(s)" in capsys.readouterr().out

    def test_update_up_to_date(self, project, fake_db, capsys):
        """Already applied migrations are reported as up to date."""
        fake_db.history.applied.add("20240101_000000")

        assert run_cli(["db", "update", "--project", str(project), "--conn", "x://h/Db"]) == 0
        assert "Database is up to date." in capsys.readouterr().out
        assert fake_db.executor.executed == []

    def test_update_uses_environment_url(self, project, fake_db, monkeypatch):
        """SQLSHIFT_URL is used when --conn is omitted."""
        monkeypatch.setenv("SQLSHIFT_URL", "x://env/Db")

        assert run_cli(["db", "update", "--project", str(project)]) == 0
        fake_db.session_cls.assert_called_once_with("x://env/Db")

    def test_update_passes_transactional(self, project, fake_db):
        """--transactional reaches the migrator factory."""
        run_cli(["db", "update", "--project", str(project), "--conn", "x://h/Db", "--transactional"])
        assert fake_db.factory.call_args.kwargs["transactional"] is True

    def test_bootstrap_failure_is_not_fatal(self, project, fake_db):
        """A skipped database creation only logs and the update continues."""
        fake_db.ensure.return_value = DatabaseEnsureResult(
            DatabaseEnsureStatus.SKIPPED_NO_MASTER_ACCESS, "AppDb", RuntimeError("denied")
        )

        assert run_cli(["db", "update", "--project", str(project), "--conn", "x://h/AppDb"]) == 0
        assert len(fake_db.history.inserted) == 1

    def test_missing_connection_fails(self, project, fake_db, capsys):
        """No --conn and no SQLSHIFT_URL exits with 1."""
        assert run_cli(["db", "update", "--project", str(project)]) == 1
        assert "SQLSHIFT_URL" in capsys.readouterr().out
        fake_db.session_cls.assert_not_called()

    def test_lock_failure_exits_nonzero(self, project, fake_db, capsys):
        """Lock contention is reported as an error."""
        fake_db.lock_provider.fail = True

        assert run_cli(["db", "update", "--project", str(project), "--conn", "x://h/Db"]) == 1
        assert "Error" in capsys.readouterr().out
        assert fake_db.history.inserted == []

    def test_status_lists_pending(self, project, fake_db, capsys):
        """db status shows pending units without applying them."""
        assert run_cli(["db", "status", "--project", str(project), "--conn", "x://h/Db"]) == 0

        out = capsys.readouterr().out
        assert "pending" in out
        assert "Pending: 1" in out
        assert fake_db.executor.executed == []
        assert ("history.ensure_created",) not in fake_db.events

    def test_script_prints_batches(self, project, fake_db, capsys):
        """db script prints SQL separated by GO and executes nothing."""
        assert run_cli(["db", "script", "--project", str(project), "--conn", "x://h/Db"]) == 0

        out = capsys.readouterr().out
        assert "INSERT INTO dbo.T VALUES (1)" in out
        assert "GO" in out
        assert fake_db.executor.executed == []

