"""Abstract interface for the append-only movement ledger."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from partstock.core.entities.movement import MovementSummary, MovementType, StockMovement


class IMovementLedger(ABC):
    """Interface for stock movement persistence. Entries are never updated or deleted."""

    @abstractmethod
    async def append(self, movement: StockMovement, conn: Any = None) -> StockMovement:
        """Record a stock movement."""
        pass

    @abstractmethod
    async def get_movement(self, movement_id: int, conn: Any = None) -> StockMovement | None:
        """Get a movement by ID."""
        pass

    @abstractmethod
    async def get_by_idempotency_key(
        self, part_id: int, idempotency_key: str, conn: Any = None
    ) -> StockMovement | None:
        """Find the movement previously recorded for this part under the given key."""
        pass

    @abstractmethod
    async def list_for_part(
        self, part_id: int, limit: int = 100, offset: int = 0
    ) -> list[StockMovement]:
        """Get movements for a part, newest first."""
        pass

    @abstractmethod
    async def count_for_part(self, part_id: int) -> int:
        """Count movements recorded for a part."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
        part_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements in a time window, newest first."""
        pass

    @abstractmethod
    async def count_movements(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
        part_id: int | None = None,
    ) -> int:
        """Count movements matching the same filters as list_movements."""
        pass

    @abstractmethod
    async def summarize(
        self,
        part_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MovementSummary]:
        """Aggregate quantity and value per movement type for a part."""
        pass

    @abstractmethod
    async def net_change(self, part_id: int, conn: Any = None) -> int:
        """Sum of signed deltas over all movements of a part."""
        pass
