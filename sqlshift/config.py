"""Migrator configuration.

Environment-based configuration for the migration CLI and the SQL Server
provider. Every field falls back to an ``SQLSHIFT_*`` environment variable.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .migrations.base import MigrationError
from .migrations.runner import MigratorOptions


class ConfigurationError(MigrationError):
    """Raised when configuration is missing or invalid."""

    pass


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class MigratorConfig:
    """Migrator configuration.

    Attributes:
        url: SQLAlchemy database URL (e.g. ``mssql+pyodbc://...``)
        scope: Lock and history scope
        product_version: Version string recorded in history
        command_timeout: Per-batch timeout in seconds
        lock_timeout_ms: How long to wait for the migration lock
        history_schema: Schema of the history table
        history_table: Name of the history table
        default_schema: Schema assumed for assets named without one
    """

    url: Optional[str] = field(default_factory=lambda: os.getenv("SQLSHIFT_URL") or None)
    scope: str = field(default_factory=lambda: os.getenv("SQLSHIFT_SCOPE", "sqlshift.Migrations"))
    product_version: str = field(
        default_factory=lambda: os.getenv(
            "SQLSHIFT_PRODUCT_VERSION", MigratorOptions.product_version
        )
    )
    command_timeout: int = field(
        default_factory=lambda: _int_env("SQLSHIFT_COMMAND_TIMEOUT", 120)
    )
    lock_timeout_ms: int = field(
        default_factory=lambda: _int_env("SQLSHIFT_LOCK_TIMEOUT_MS", 30000)
    )
    history_schema: str = field(
        default_factory=lambda: os.getenv("SQLSHIFT_HISTORY_SCHEMA", "dbo")
    )
    history_table: str = field(
        default_factory=lambda: os.getenv("SQLSHIFT_HISTORY_TABLE", "__SqlShiftMigrationsHistory")
    )
    default_schema: str = field(
        default_factory=lambda: os.getenv("SQLSHIFT_DEFAULT_SCHEMA", "dbo")
    )

    def validate(self) -> list[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.scope:
            errors.append("SQLSHIFT_SCOPE must not be empty")
        if not self.product_version:
            errors.append("SQLSHIFT_PRODUCT_VERSION must not be empty")
        if self.command_timeout <= 0:
            errors.append("SQLSHIFT_COMMAND_TIMEOUT must be positive")
        if self.lock_timeout_ms < 0:
            errors.append("SQLSHIFT_LOCK_TIMEOUT_MS must not be negative")
        if not self.history_schema or not self.history_table:
            errors.append("History table schema and name are required")
        if not self.default_schema:
            errors.append("SQLSHIFT_DEFAULT_SCHEMA must not be empty")

        return errors

    def require_url(self) -> str:
        """Get the database URL or raise if it is not configured."""
        if not self.url:
            raise ConfigurationError(
                "No connection configured. Pass --conn or set SQLSHIFT_URL"
            )
        return self.url

    def to_options(self, transactional: bool = False) -> MigratorOptions:
        """Build Migrator options from this configuration."""
        return MigratorOptions(
            scope=self.scope,
            product_version=self.product_version,
            command_timeout_seconds=self.command_timeout,
            transactional=transactional,
        )


# Global configuration instance
_config: Optional[MigratorConfig] = None


def get_config() -> MigratorConfig:
    """Get the global migrator configuration."""
    global _config
    if _config is None:
        _config = MigratorConfig()
    return _config


def set_config(config: Optional[MigratorConfig]) -> None:
    """Set (or reset with None) the global migrator configuration."""
    global _config
    _config = config
