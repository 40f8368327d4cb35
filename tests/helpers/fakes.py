"""Recording fakes for the Migrator collaborators.

All fakes append to a shared ``events`` list so tests can assert on the
exact interleaving of history, lock and executor calls.
"""

from datetime import datetime
from typing import Optional

from sqlshift.migrations.base import MigrationLockError


class RecordingGenerator:
    """Emits one batch per operation, labelled with the operation kind.

    ``batches_per_op`` lets a test expand each operation into several batches.
    """

    def __init__(self, events: list, batches_per_op: int = 1):
        self.events = events
        self.batches_per_op = batches_per_op
        self.calls: list[tuple] = []

    def generate(self, operations) -> list[str]:
        self.calls.append(tuple(operations))
        batches = []
        for op in operations:
            label = getattr(op, "sql", None) or op.kind.value
            for i in range(self.batches_per_op):
                suffix = f"#{i + 1}" if self.batches_per_op > 1 else ""
                batches.append(f"{label}{suffix}")
        return batches


class FakeHistory:
    def __init__(self, events: list, applied: Optional[set[str]] = None, created: bool = True):
        self.events = events
        self.applied = set(applied or ())
        self.created = created
        self.inserted: list[tuple[str, str, str, datetime]] = []

    def ensure_created(self) -> None:
        self.events.append(("history.ensure_created",))
        self.created = True

    def exists(self) -> bool:
        self.events.append(("history.exists",))
        return self.created

    def get_applied_migration_ids(self) -> set[str]:
        self.events.append(("history.get_applied",))
        return set(self.applied)

    def insert(self, migration_id, name, product_version, applied_at_utc) -> None:
        self.events.append(("history.insert", migration_id))
        self.inserted.append((migration_id, name, product_version, applied_at_utc))
        self.applied.add(migration_id)


class FakeLock:
    def __init__(self, events: list, scope: str):
        self.events = events
        self.scope = scope
        self.release_count = 0

    def release(self) -> None:
        self.release_count += 1
        self.events.append(("lock.release", self.scope))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return None


class FakeLockProvider:
    def __init__(self, events: list, fail: bool = False):
        self.events = events
        self.fail = fail
        self.locks: list[FakeLock] = []

    def acquire(self, scope: str) -> FakeLock:
        self.events.append(("lock.acquire", scope))
        if self.fail:
            raise MigrationLockError(f"lock busy: {scope}")
        lock = FakeLock(self.events, scope)
        self.locks.append(lock)
        return lock


class FakeExecutor:
    """Records batches; raises for any batch listed in ``fail_on``."""

    def __init__(self, events: list, fail_on: Optional[set[str]] = None):
        self.events = events
        self.fail_on = set(fail_on or ())
        self.executed: list[tuple[str, int]] = []

    def execute_batch(self, sql: str, timeout_seconds: int = 120) -> None:
        self.events.append(("execute", sql))
        if sql in self.fail_on:
            raise RuntimeError(f"batch failed: {sql}")
        self.executed.append((sql, timeout_seconds))


class FakeTransactionalExecutor(FakeExecutor):
    def begin_transaction(self) -> None:
        self.events.append(("tx.begin",))

    def commit(self) -> None:
        self.events.append(("tx.commit",))

    def rollback(self) -> None:
        self.events.append(("tx.rollback",))
