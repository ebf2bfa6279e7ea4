"""SQLite storage implementations."""

from partstock.infrastructure.storage.sqlite.alert_store import SQLiteReorderAlertStore
from partstock.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from partstock.infrastructure.storage.sqlite.movement_ledger import SQLiteMovementLedger
from partstock.infrastructure.storage.sqlite.part_store import SQLitePartStore

# Singleton instances
_part_store: SQLitePartStore | None = None
_movement_ledger: SQLiteMovementLedger | None = None
_alert_store: SQLiteReorderAlertStore | None = None


async def get_part_store() -> SQLitePartStore:
    """Get singleton part store instance."""
    global _part_store
    if _part_store is None:
        _part_store = SQLitePartStore()
    return _part_store


async def get_movement_ledger() -> SQLiteMovementLedger:
    """Get singleton movement ledger instance."""
    global _movement_ledger
    if _movement_ledger is None:
        _movement_ledger = SQLiteMovementLedger()
    return _movement_ledger


async def get_alert_store() -> SQLiteReorderAlertStore:
    """Get singleton reorder alert store instance."""
    global _alert_store
    if _alert_store is None:
        _alert_store = SQLiteReorderAlertStore()
    return _alert_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLitePartStore",
    "SQLiteMovementLedger",
    "SQLiteReorderAlertStore",
    # Factory functions
    "get_part_store",
    "get_movement_ledger",
    "get_alert_store",
]
