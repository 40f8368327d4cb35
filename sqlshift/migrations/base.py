"""Base classes for the migration system.

Defines the core abstractions:
- BaseMigration: Abstract base class for all migration units
- AppliedMigration: Record of a migration stored in the history table
- MigrationError: Root of the exception family raised by the core
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..builder import MigrationBuilder
from ..operations import MigrationOperation

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Base exception for migration errors."""

    pass


class MigrationLockError(MigrationError):
    """Raised when the migration lock cannot be acquired."""

    pass


class UnsupportedOperationError(MigrationError):
    """Raised by a SQL generator for an operation kind it cannot translate."""

    pass


@dataclass(frozen=True)
class AppliedMigration:
    """Row of the migration history."""

    id: str
    name: str
    product_version: str
    applied_at_utc: datetime


class BaseMigration(ABC):
    """Abstract base class for migration units.

    Each migration must define:
    - id: Unique, sortable identifier (e.g., "20251221_153501")
    - name: Human-readable label (e.g., "CreateUsers")
    - up(): Record the operations that apply the migration

    ``down()`` is optional and raises NotImplementedError by default.
    Whether a migration is applied lives in the history repository,
    never on the unit itself.
    """

    id: str
    name: str

    def __init_subclass__(cls, **kwargs):
        """Validate subclass attributes."""
        super().__init_subclass__(**kwargs)

        if not getattr(cls, "id", None):
            raise TypeError(f"Migration {cls.__name__} must define 'id'")
        if not getattr(cls, "name", None):
            raise TypeError(f"Migration {cls.__name__} must define 'name'")

    @abstractmethod
    def up(self, mb: MigrationBuilder) -> None:
        """Record the operations that apply the migration.

        Args:
            mb: Builder collecting operations in order
        """
        pass

    def down(self, mb: MigrationBuilder) -> None:
        """Record the operations that revert the migration.

        Default implementation raises NotImplementedError.

        Args:
            mb: Builder collecting operations in order

        Raises:
            NotImplementedError: If rollback is not supported
        """
        raise NotImplementedError(f"Migration {self.full_name} does not support rollback")

    def build_up(self) -> tuple[MigrationOperation, ...]:
        """Run ``up`` against a fresh builder and return its operations."""
        mb = MigrationBuilder()
        self.up(mb)
        return mb.operations

    def build_down(self) -> tuple[MigrationOperation, ...]:
        """Run ``down`` against a fresh builder and return its operations."""
        mb = MigrationBuilder()
        self.down(mb)
        return mb.operations

    @property
    def full_name(self) -> str:
        """Get full migration name (id_name)."""
        return f"{self.id}_{self.name}"

    def __repr__(self) -> str:
        return f"<Migration {self.full_name}>"
