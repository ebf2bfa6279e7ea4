"""Abstract interface for part record storage."""

from abc import ABC, abstractmethod
from typing import Any

from partstock.core.entities.part import Part, StockStatus


class IPartStore(ABC):
    """
    Interface for part persistence.

    Methods accepting ``conn`` join the caller's open transaction when one is
    given and open their own otherwise.
    """

    @abstractmethod
    async def create_part(self, part: Part, conn: Any = None) -> Part:
        """Insert a new part. Raises DuplicatePartNumberError on a taken number."""
        pass

    @abstractmethod
    async def get_part(self, part_id: int, conn: Any = None) -> Part | None:
        """Get part by ID."""
        pass

    @abstractmethod
    async def get_part_by_number(self, part_number: str, conn: Any = None) -> Part | None:
        """Get part by its (normalized) part number."""
        pass

    @abstractmethod
    async def list_parts(
        self,
        search: str | None = None,
        category: str | None = None,
        stock_status: StockStatus | None = None,
        reorder_only: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Part]:
        """List parts with optional filters and pagination."""
        pass

    @abstractmethod
    async def count_parts(
        self,
        search: str | None = None,
        category: str | None = None,
        stock_status: StockStatus | None = None,
        reorder_only: bool = False,
        include_inactive: bool = False,
    ) -> int:
        """Count parts matching the same filters as list_parts."""
        pass

    @abstractmethod
    async def write_stock(self, part: Part, expected_version: int, conn: Any = None) -> Part:
        """
        Persist a new stock level if the stored version still equals expected_version.

        Raises VersionConflictError when the row was changed since it was read.
        """
        pass

    @abstractmethod
    async def update_details(self, part: Part, expected_version: int, conn: Any = None) -> Part:
        """Persist non-quantity fields under the same version guard as write_stock."""
        pass

    @abstractmethod
    async def list_low_stock(self, limit: int = 100, offset: int = 0) -> list[Part]:
        """List active parts at or below their reorder threshold, lowest stock first."""
        pass

    @abstractmethod
    async def get_summary(self) -> dict[str, Any]:
        """Totals over active parts: count, value and stock distribution."""
        pass

    @abstractmethod
    async def get_category_breakdown(self) -> list[dict[str, Any]]:
        """Per-category totals over active parts, highest value first."""
        pass

    @abstractmethod
    async def get_value_summary(self) -> dict[str, Any]:
        """Inventory value totals over active parts."""
        pass

    @abstractmethod
    async def list_top_value_parts(self, limit: int = 10) -> list[Part]:
        """Active parts with the highest stock value."""
        pass
