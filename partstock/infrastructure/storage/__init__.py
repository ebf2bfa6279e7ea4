"""Storage infrastructure implementations."""

from partstock.infrastructure.storage.sqlite import (
    SQLiteMovementLedger,
    SQLitePartStore,
    SQLiteReorderAlertStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLitePartStore",
    "SQLiteMovementLedger",
    "SQLiteReorderAlertStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
