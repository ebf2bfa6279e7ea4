"""Core interfaces (ports) for dependency injection."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from partstock.core.interfaces.alert_store import IReorderAlertStore
from partstock.core.interfaces.movement_ledger import IMovementLedger
from partstock.core.interfaces.part_store import IPartStore

# Opens one storage transaction; the yielded handle is passed as ``conn``.
TransactionFactory = Callable[[], AbstractAsyncContextManager[Any]]

__all__ = [
    "IPartStore",
    "IMovementLedger",
    "IReorderAlertStore",
    "TransactionFactory",
]
