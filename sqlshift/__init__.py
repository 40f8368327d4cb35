"""sqlshift: operation-based schema migrations with drift detection for
programmable database objects.
"""

__version__ = "0.1.0"

from .builder import MigrationBuilder  # noqa: E402
from .migrations import (  # noqa: E402
    AppliedMigration,
    BaseMigration,
    MigrationError,
    MigrationLockError,
    MigrationRegistry,
    MigrationResult,
    Migrator,
    MigratorOptions,
    MigratorState,
    UnsupportedOperationError,
    discover_migrations,
)
from .operations import (  # noqa: E402
    BoolType,
    BytesType,
    ColumnType,
    DateTimeOffsetType,
    DateTimeType,
    DecimalType,
    DoubleType,
    GuidType,
    Int32Type,
    Int64Type,
    JsonType,
    MigrationOperation,
    OperationKind,
    ReferentialAction,
    RoutineKind,
    StringType,
)
from .assets import DbAsset, DbAssetKind, FileSystemAssetProvider, hash_sql  # noqa: E402
from .snapshot import JsonSnapshotStore, ProgrammableSnapshot  # noqa: E402
from .diff import ProgrammablesDiffer  # noqa: E402
from .scaffold import MigrationScaffolder  # noqa: E402
from .config import ConfigurationError, MigratorConfig, get_config, set_config  # noqa: E402

__all__ = [
    "__version__",
    "MigrationBuilder",
    "AppliedMigration",
    "BaseMigration",
    "MigrationError",
    "MigrationLockError",
    "MigrationRegistry",
    "MigrationResult",
    "Migrator",
    "MigratorOptions",
    "MigratorState",
    "UnsupportedOperationError",
    "discover_migrations",
    "BoolType",
    "BytesType",
    "ColumnType",
    "DateTimeOffsetType",
    "DateTimeType",
    "DecimalType",
    "DoubleType",
    "GuidType",
    "Int32Type",
    "Int64Type",
    "JsonType",
    "MigrationOperation",
    "OperationKind",
    "ReferentialAction",
    "RoutineKind",
    "StringType",
    "DbAsset",
    "DbAssetKind",
    "FileSystemAssetProvider",
    "hash_sql",
    "JsonSnapshotStore",
    "ProgrammableSnapshot",
    "ProgrammablesDiffer",
    "MigrationScaffolder",
    "ConfigurationError",
    "MigratorConfig",
    "get_config",
    "set_config",
]
