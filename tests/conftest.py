"""Pytest fixtures for sqlshift tests."""

import pytest

from sqlshift.config import set_config
from sqlshift.migrations.runner import Migrator, MigratorOptions
from tests.helpers.fakes import (
    FakeExecutor,
    FakeHistory,
    FakeLockProvider,
    RecordingGenerator,
)


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Isolate tests from SQLSHIFT_* variables and the global config."""
    for name in (
        "SQLSHIFT_URL",
        "SQLSHIFT_SCOPE",
        "SQLSHIFT_PRODUCT_VERSION",
        "SQLSHIFT_COMMAND_TIMEOUT",
        "SQLSHIFT_LOCK_TIMEOUT_MS",
        "SQLSHIFT_HISTORY_SCHEMA",
        "SQLSHIFT_HISTORY_TABLE",
        "SQLSHIFT_DEFAULT_SCHEMA",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def events():
    """Shared call log for the recording fakes."""
    return []


@pytest.fixture
def generator(events):
    return RecordingGenerator(events)


@pytest.fixture
def history(events):
    return FakeHistory(events)


@pytest.fixture
def lock_provider(events):
    return FakeLockProvider(events)


@pytest.fixture
def executor(events):
    return FakeExecutor(events)


@pytest.fixture
def migrator(generator, history, lock_provider, executor):
    """Migrator wired to recording fakes."""
    return Migrator(
        sql_generator=generator,
        history=history,
        lock_provider=lock_provider,
        executor=executor,
        options=MigratorOptions(scope="Test.Migrations", product_version="test-1.0"),
    )
