"""Stock movement (ledger entry) entities."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from partstock.core.entities.part import StockLocation


class MovementType(str, Enum):
    """Types of stock movements."""

    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"
    DAMAGE = "DAMAGE"
    RETURN = "RETURN"

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]


OPENING_BALANCE_REFERENCE = "OPENING_BALANCE"


class StockMovement(BaseModel):
    """
    Immutable record of a single stock change.

    ``quantity`` is always the positive magnitude of the movement.
    ``signed_delta`` is ``new_stock - previous_stock`` (zero for transfers) and
    ``set_point`` holds the requested absolute level for ADJUSTMENT entries, so
    reports never have to infer one from the other.
    """

    id: int | None = None
    part_id: int
    movement_type: MovementType
    quantity: int = Field(..., gt=0)
    previous_stock: int = Field(..., ge=0)
    new_stock: int = Field(..., ge=0)
    signed_delta: int
    set_point: int | None = None

    unit_price: float = Field(default=0.0, ge=0)
    total_value: float = Field(default=0.0, ge=0)
    currency: str = "USD"

    reference: str | None = None
    notes: str | None = Field(default=None, max_length=500)
    from_location: StockLocation | None = None
    to_location: StockLocation | None = None

    performed_by: str
    approved_by: str | None = None
    idempotency_key: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MovementSummary(BaseModel):
    """Aggregated movements of one type over a time window."""

    movement_type: MovementType
    total_quantity: int = 0
    total_value: float = 0.0
    net_change: int = 0
    count: int = 0
