"""Collaborator protocols consumed by the Migrator.

Defines the contracts a database provider must implement. The core never
talks to a database directly; it only calls these interfaces.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from ..operations import MigrationOperation


@runtime_checkable
class MigrationSqlGenerator(Protocol):
    """Turns engine-neutral operations into executable SQL batches."""

    def generate(self, operations: Sequence[MigrationOperation]) -> list[str]:
        """Convert operations into batches for one database engine.

        Must be deterministic for a given operation list.
        """
        ...


@runtime_checkable
class MigrationHistoryRepository(Protocol):
    """Tracks which migration ids have been applied."""

    def ensure_created(self) -> None:
        """Create the history storage if missing (idempotent)."""
        ...

    def exists(self) -> bool:
        """Whether the history storage has been created."""
        ...

    def get_applied_migration_ids(self) -> set[str]:
        """Return the ids of all applied migrations."""
        ...

    def insert(
        self,
        migration_id: str,
        name: str,
        product_version: str,
        applied_at_utc: datetime,
    ) -> None:
        """Record a migration as applied."""
        ...


class MigrationLock(Protocol):
    """Scoped lock handle. Released on context exit."""

    def release(self) -> None:
        ...

    def __enter__(self) -> "MigrationLock":
        ...

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        ...


@runtime_checkable
class MigrationLockProvider(Protocol):
    """Provides a mutually exclusive lock per scope string."""

    def acquire(self, scope: str) -> MigrationLock:
        """Acquire the lock for ``scope``.

        Blocking or failing on contention is the provider's own policy.
        """
        ...


@runtime_checkable
class MigrationExecutor(Protocol):
    """Runs one SQL batch against the target database."""

    def execute_batch(self, sql: str, timeout_seconds: int = 120) -> None:
        """Execute ``sql``; any error (including timeout) propagates."""
        ...


@runtime_checkable
class TransactionalMigrationExecutor(MigrationExecutor, Protocol):
    """Executor able to wrap a migration unit in a transaction."""

    def begin_transaction(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...
