"""Database migrations module."""

from partstock.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    MigrationResult,
    MigrationStatus,
    SchemaCheck,
    discover_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)

__all__ = [
    "Migration",
    "MigrationResult",
    "MigrationStatus",
    "SchemaCheck",
    "discover_migrations",
    "get_current_version",
    "get_migration_status",
    "initialize_database",
    "verify_schema_integrity",
]
