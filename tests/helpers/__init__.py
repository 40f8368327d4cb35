"""Test helpers package for shared fakes."""

from tests.helpers.fakes import (
    FakeExecutor,
    FakeHistory,
    FakeLock,
    FakeLockProvider,
    FakeTransactionalExecutor,
    RecordingGenerator,
)

__all__ = [
    "FakeExecutor",
    "FakeHistory",
    "FakeLock",
    "FakeLockProvider",
    "FakeTransactionalExecutor",
    "RecordingGenerator",
]
