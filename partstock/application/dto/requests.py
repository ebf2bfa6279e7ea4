"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Quantity and operation type are accepted loosely here and validated by the
use case, so a bad value surfaces as the ledger's own InvalidQuantity /
InvalidOperationType error rather than a generic schema error.
"""

from pydantic import BaseModel, Field

from partstock.core.services.stock_transitions import MAX_QUANTITY


class LocationRequest(BaseModel):
    """Storage slot; omitted parts fall back to configured defaults."""

    warehouse: str | None = Field(default=None, max_length=100)
    section: str | None = Field(default=None, max_length=50)
    shelf: str | None = Field(default=None, max_length=50)
    bin: str | None = Field(default=None, max_length=50)


# --- Stock ---


class AdjustStockRequest(BaseModel):
    """Request to apply one stock movement to a part."""

    part_id: int = Field(..., description="Part to adjust")
    transaction_type: str = Field(
        ...,
        description="IN, OUT, ADJUSTMENT, TRANSFER, DAMAGE or RETURN",
        examples=["IN", "OUT"],
    )
    quantity: int | float = Field(
        ...,
        description="Positive whole number; absolute target level for ADJUSTMENT",
    )
    unit_price: float | None = Field(
        default=None,
        ge=0,
        description="Unit price snapshot (defaults to the part's current price)",
    )
    reference: str | None = Field(
        default=None,
        max_length=100,
        description="PO, invoice or job card reference",
    )
    notes: str | None = Field(default=None, max_length=500)
    approved_by: str | None = Field(default=None, max_length=100)
    to_location: LocationRequest | None = Field(
        default=None,
        description="Destination slot, required for TRANSFER",
    )
    idempotency_key: str | None = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Client key; repeating a request with the same key replays the first result",
    )


# --- Parts ---


class CreatePartRequest(BaseModel):
    """Request to register a new part."""

    part_number: str = Field(..., min_length=2, max_length=50, examples=["BRK-PAD-001"])
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    category: str = Field(default="Other", max_length=100)
    manufacturer: str | None = Field(default=None, max_length=100)
    supplier: str | None = Field(default=None, max_length=100)
    current_stock: int = Field(default=0, ge=0, le=MAX_QUANTITY, description="Opening stock on hand")
    min_stock_level: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    max_stock_level: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    unit_price: float = Field(default=0.0, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    location: LocationRequest | None = None


class UpdatePartRequest(BaseModel):
    """Request to change non-quantity part attributes.

    Stock on hand only changes through stock adjustments.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    category: str | None = Field(default=None, max_length=100)
    manufacturer: str | None = Field(default=None, max_length=100)
    supplier: str | None = Field(default=None, max_length=100)
    min_stock_level: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    max_stock_level: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    unit_price: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    location: LocationRequest | None = None


# --- Alerts ---


class AlertActionRequest(BaseModel):
    """Operator acknowledge / dismiss request."""

    notes: str | None = Field(default=None, max_length=500)
