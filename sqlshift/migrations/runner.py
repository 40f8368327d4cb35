"""Migration runner for applying migration units.

Provides:
- Ordered application of pending migrations under a scoped lock
- History tracking (one record per applied unit)
- Dry-run SQL scripting of pending migrations

State machine of a run:
    NOT_STARTED -> HISTORY_ENSURED -> LOCK_ACQUIRED -> APPLYING (per unit)
    -> LOCK_RELEASED -> DONE

Any failure releases the lock, sets FAILED and re-raises the original error.
A unit whose batches fail is never recorded, so the next run retries it
from its first batch. Batches already executed for that unit are not
rolled back unless ``MigratorOptions.transactional`` is enabled and the
executor supports transactions.
"""

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from .. import __version__
from ..operations import describe
from .base import AppliedMigration, BaseMigration
from .interfaces import (
    MigrationExecutor,
    MigrationHistoryRepository,
    MigrationLockProvider,
    MigrationSqlGenerator,
    TransactionalMigrationExecutor,
)

logger = logging.getLogger(__name__)


class MigratorState(str, Enum):
    """State of a ``Migrator.migrate`` run."""

    NOT_STARTED = "not_started"
    HISTORY_ENSURED = "history_ensured"
    LOCK_ACQUIRED = "lock_acquired"
    APPLYING = "applying"
    LOCK_RELEASED = "lock_released"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class MigratorOptions:
    """Options for a Migrator.

    Attributes:
        scope: Lock/history scope name
        product_version: Version string stored with each history record
        command_timeout_seconds: Timeout applied to every batch
        transactional: Wrap each unit in a transaction when the executor
            supports it
    """

    scope: str = "sqlshift.Migrations"
    product_version: str = f"sqlshift-{__version__}"
    command_timeout_seconds: int = 120
    transactional: bool = False


@dataclass
class MigrationResult:
    """Result of a successful migrate run."""

    applied: list[AppliedMigration] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        """True when nothing had to be applied."""
        return not self.applied


@dataclass
class MigrationScript:
    """Generated SQL for one pending migration (dry run)."""

    migration: BaseMigration
    batches: list[str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Migrator:
    """Applies migration units against a database through collaborators."""

    def __init__(
        self,
        sql_generator: MigrationSqlGenerator,
        history: MigrationHistoryRepository,
        lock_provider: MigrationLockProvider,
        executor: MigrationExecutor,
        options: Optional[MigratorOptions] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the migrator.

        Args:
            sql_generator: Translates operations into SQL batches
            history: Applied-migration storage
            lock_provider: Cross-process lock
            executor: Runs SQL batches
            options: Migrator options (defaults if not provided)
            clock: Source of the UTC timestamp stored in history
        """
        self.sql_generator = sql_generator
        self.history = history
        self.lock_provider = lock_provider
        self.executor = executor
        self.options = options or MigratorOptions()
        self._clock = clock
        self.state = MigratorState.NOT_STARTED

    @staticmethod
    def order(migrations: Iterable[BaseMigration]) -> list[BaseMigration]:
        """Sort units by id using ordinal string comparison."""
        return sorted(migrations, key=lambda m: m.id)

    def pending(self, migrations: Iterable[BaseMigration]) -> list[BaseMigration]:
        """Get migrations not yet applied, in application order.

        Read-only: reads history without taking the lock, and a missing
        history table means nothing has been applied.
        """
        applied = self.history.get_applied_migration_ids() if self.history.exists() else set()
        return [m for m in self.order(migrations) if m.id not in applied]

    def script(self, migrations: Iterable[BaseMigration]) -> list[MigrationScript]:
        """Generate the SQL for every pending migration without executing it."""
        return [
            MigrationScript(migration=m, batches=list(self.sql_generator.generate(m.build_up())))
            for m in self.pending(migrations)
        ]

    def migrate(self, migrations: Iterable[BaseMigration]) -> MigrationResult:
        """Apply pending migrations.

        Args:
            migrations: Known migration units, in any order

        Returns:
            Result listing applied and skipped units

        Raises:
            Exception: Whatever a collaborator raised; the lock is released first
        """
        result = MigrationResult()
        self.state = MigratorState.NOT_STARTED

        try:
            self.history.ensure_created()
            self.state = MigratorState.HISTORY_ENSURED

            with self.lock_provider.acquire(self.options.scope):
                self.state = MigratorState.LOCK_ACQUIRED
                logger.info(f"Acquired migration lock '{self.options.scope}'")

                applied_ids = self.history.get_applied_migration_ids()

                for migration in self.order(migrations):
                    if migration.id in applied_ids:
                        logger.debug(f"Skipping applied migration {migration.full_name}")
                        result.skipped.append(migration.id)
                        continue

                    self.state = MigratorState.APPLYING
                    result.applied.append(self._apply(migration))

            self.state = MigratorState.LOCK_RELEASED
            logger.debug(f"Released migration lock '{self.options.scope}'")

        except Exception as e:
            self.state = MigratorState.FAILED
            logger.error(f"Migration run failed: {e}")
            raise

        self.state = MigratorState.DONE
        if result.up_to_date:
            logger.info("Database is up to date")
        else:
            logger.info(f"Applied {len(result.applied)} migration(s)")
        return result

    def _apply(self, migration: BaseMigration) -> AppliedMigration:
        """Build, generate and execute one migration, then record it."""
        logger.info(f"Applying migration {migration.full_name}...")
        start_time = time.time()

        operations = migration.build_up()
        for op in operations:
            logger.debug(f"{migration.full_name}: {describe(op)}")
        batches = self.sql_generator.generate(operations)

        transactional = self._use_transaction()
        if transactional:
            self.executor.begin_transaction()  # type: ignore[attr-defined]

        try:
            for index, sql in enumerate(batches, start=1):
                logger.debug(f"{migration.full_name}: batch {index}/{len(batches)}")
                self.executor.execute_batch(sql, self.options.command_timeout_seconds)

            record = AppliedMigration(
                id=migration.id,
                name=migration.name,
                product_version=self.options.product_version,
                applied_at_utc=self._clock(),
            )
            self.history.insert(
                record.id, record.name, record.product_version, record.applied_at_utc
            )

            if transactional:
                self.executor.commit()  # type: ignore[attr-defined]

        except Exception as e:
            logger.error(f"Failed to apply migration {migration.full_name}: {e}")
            if transactional:
                self.executor.rollback()  # type: ignore[attr-defined]
            raise

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Applied {migration.full_name} "
            f"({len(operations)} ops, {len(batches)} batches) in {execution_time_ms}ms"
        )
        return record

    def _use_transaction(self) -> bool:
        if not self.options.transactional:
            return False
        if isinstance(self.executor, TransactionalMigrationExecutor):
            return True
        logger.warning(
            "Transactional migrations requested but the executor does not "
            "support transactions; running without one"
        )
        return False
