"""Part (stock-keeping unit) entity."""

import re
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field, field_validator

from partstock.core.exceptions import InvalidStockPolicyError

PART_NUMBER_PATTERN = re.compile(r"^[A-Z0-9_-]{2,50}$")


class StockStatus(str, Enum):
    """Coarse stock state derived from quantity and thresholds."""

    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    IN_STOCK = "IN_STOCK"
    OVERSTOCK = "OVERSTOCK"


class StockLocation(BaseModel):
    """Physical storage slot."""

    warehouse: str = "Main Warehouse"
    section: str = "A"
    shelf: str = "1"
    bin: str = "1"

    @property
    def code(self) -> str:
        return f"{self.warehouse}-{self.section}-{self.shelf}-{self.bin}"


def normalize_part_number(value: str) -> str:
    """Trim and uppercase a part number, rejecting malformed ones."""
    normalized = value.strip().upper()
    if not PART_NUMBER_PATTERN.match(normalized):
        raise ValueError(
            "part number must be 2-50 characters of A-Z, 0-9, '-' or '_'"
        )
    return normalized


class Part(BaseModel):
    """
    A stocked SKU.

    ``current_stock`` is owned by the stock ledger: it only changes through a
    stock adjustment, which also appends a movement. ``version`` is bumped on
    every write and guards conditional updates.
    """

    id: int | None = None
    part_number: str
    name: str
    description: str | None = None
    category: str = "Other"
    manufacturer: str | None = None
    supplier: str | None = None

    current_stock: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=5, ge=0)
    max_stock_level: int = Field(default=100, ge=0)

    unit_price: float = Field(default=0.0, ge=0)
    currency: str = "USD"
    location: StockLocation = Field(default_factory=StockLocation)

    is_active: bool = True
    last_restock_date: datetime | None = None
    version: int = 0

    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("part_number")
    @classmethod
    def _normalize_part_number(cls, v: str) -> str:
        return normalize_part_number(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_reorder_required(self) -> bool:
        """True when stock is at or below the reorder threshold."""
        return self.current_stock <= self.min_stock_level

    @property
    def stock_status(self) -> StockStatus:
        if self.current_stock == 0:
            return StockStatus.OUT_OF_STOCK
        if self.current_stock <= self.min_stock_level:
            return StockStatus.LOW_STOCK
        if self.current_stock >= self.max_stock_level:
            return StockStatus.OVERSTOCK
        return StockStatus.IN_STOCK

    @property
    def stock_value(self) -> float:
        """On-hand value at the current unit price."""
        return self.current_stock * self.unit_price

    def ensure_valid_policy(self) -> None:
        """Raise InvalidStockPolicyError unless max_stock_level > min_stock_level."""
        if self.max_stock_level <= self.min_stock_level:
            raise InvalidStockPolicyError(self.min_stock_level, self.max_stock_level)
