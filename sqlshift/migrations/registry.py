"""Migration registry for discovering and ordering migrations.

Provides:
- Discovery of migration classes from a directory of Python files
- Ordinal ordering by migration id
- Duplicate id detection
"""

import importlib.util
import logging
import sys
from pathlib import Path
from typing import Optional

from .base import BaseMigration, MigrationError

logger = logging.getLogger(__name__)

# Namespace used for modules loaded from a migrations directory
DISCOVERED_MODULE_PREFIX = "sqlshift_discovered"


class MigrationRegistry:
    """Registry for managing and ordering migrations.

    Ordering is by ``id`` using plain string comparison, which in Python
    is ordinal (code point) comparison and never locale-aware.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._migrations: dict[str, BaseMigration] = {}
        self._sorted: Optional[list[BaseMigration]] = None

    def register(self, migration: BaseMigration) -> None:
        """Register a migration.

        Args:
            migration: Migration instance to register

        Raises:
            MigrationError: If id already registered
        """
        if migration.id in self._migrations:
            existing = self._migrations[migration.id]
            raise MigrationError(
                f"Duplicate migration id {migration.id}: "
                f"{existing.name} and {migration.name}"
            )

        self._migrations[migration.id] = migration
        self._sorted = None  # Invalidate cache

    def get(self, migration_id: str) -> Optional[BaseMigration]:
        """Get a migration by id.

        Args:
            migration_id: Migration id

        Returns:
            Migration instance or None
        """
        return self._migrations.get(migration_id)

    def get_all(self) -> list[BaseMigration]:
        """Get all migrations in ascending id order."""
        if self._sorted is None:
            self._sorted = sorted(self._migrations.values(), key=lambda m: m.id)
        return self._sorted.copy()

    def get_ids(self) -> list[str]:
        """Get all registered ids in order."""
        return [m.id for m in self.get_all()]

    def __len__(self) -> int:
        return len(self._migrations)


def _load_module(path: Path):
    module_name = f"{DISCOVERED_MODULE_PREFIX}.{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise MigrationError(f"Cannot load migration file {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        raise MigrationError(f"Failed to load migration {path.name}: {e}") from e
    return module


def find_migration_classes(module) -> list[type[BaseMigration]]:
    """Concrete BaseMigration subclasses defined in ``module``."""
    found = []
    for attr_name in dir(module):
        attr = getattr(module, attr_name)
        if (
            isinstance(attr, type)
            and issubclass(attr, BaseMigration)
            and attr is not BaseMigration
            and attr.__module__ == module.__name__
            and not getattr(attr, "__abstractmethods__", None)
        ):
            found.append(attr)
    return found


def discover_migrations(directory: Path) -> MigrationRegistry:
    """Discover all migrations in a directory.

    Every ``*.py`` file whose name does not start with ``_`` is imported and
    each concrete migration class it defines is registered. A file that
    cannot be imported aborts discovery: skipping it would silently change
    the set of units applied.

    Args:
        directory: Directory holding migration files

    Returns:
        Registry with discovered migrations

    Raises:
        MigrationError: If a file fails to import or ids collide
    """
    registry = MigrationRegistry()
    directory = Path(directory)

    if not directory.is_dir():
        logger.warning(f"Migrations directory not found: {directory}")
        return registry

    for path in sorted(directory.glob("*.py")):
        if path.name.startswith("_"):
            continue

        module = _load_module(path)
        for cls in find_migration_classes(module):
            migration = cls()
            registry.register(migration)
            logger.debug(f"Discovered migration: {migration.full_name}")

    return registry
