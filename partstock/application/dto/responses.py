"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from partstock.core.entities.alert import ReorderAlert
from partstock.core.entities.movement import MovementSummary, StockMovement
from partstock.core.entities.part import Part, StockLocation


class LocationResponse(BaseModel):
    """Storage slot in response."""

    warehouse: str
    section: str
    shelf: str
    bin: str
    code: str

    @classmethod
    def from_entity(cls, location: StockLocation) -> "LocationResponse":
        return cls(
            warehouse=location.warehouse,
            section=location.section,
            shelf=location.shelf,
            bin=location.bin,
            code=location.code,
        )


class PartResponse(BaseModel):
    """Part response DTO."""

    id: int
    part_number: str
    name: str
    description: str | None = None
    category: str
    manufacturer: str | None = None
    supplier: str | None = None
    current_stock: int
    min_stock_level: int
    max_stock_level: int
    unit_price: float
    currency: str
    stock_value: float
    stock_status: str
    is_reorder_required: bool
    location: LocationResponse
    is_active: bool
    last_restock_date: datetime | None = None
    version: int
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, part: Part) -> "PartResponse":
        return cls(
            id=part.id,  # type: ignore[arg-type]
            part_number=part.part_number,
            name=part.name,
            description=part.description,
            category=part.category,
            manufacturer=part.manufacturer,
            supplier=part.supplier,
            current_stock=part.current_stock,
            min_stock_level=part.min_stock_level,
            max_stock_level=part.max_stock_level,
            unit_price=part.unit_price,
            currency=part.currency,
            stock_value=round(part.stock_value, 2),
            stock_status=part.stock_status.value,
            is_reorder_required=part.is_reorder_required,
            location=LocationResponse.from_entity(part.location),
            is_active=part.is_active,
            last_restock_date=part.last_restock_date,
            version=part.version,
            created_by=part.created_by,
            updated_by=part.updated_by,
            created_at=part.created_at,
            updated_at=part.updated_at,
        )


class PartListResponse(BaseModel):
    """Paginated part list response."""

    parts: list[PartResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class StockMovementResponse(BaseModel):
    """Stock movement (ledger entry) response DTO."""

    id: int
    part_id: int
    movement_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    signed_delta: int
    set_point: int | None = None
    unit_price: float
    total_value: float
    currency: str
    reference: str | None = None
    notes: str | None = None
    from_location: LocationResponse | None = None
    to_location: LocationResponse | None = None
    performed_by: str
    approved_by: str | None = None
    idempotency_key: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, movement: StockMovement) -> "StockMovementResponse":
        return cls(
            id=movement.id,  # type: ignore[arg-type]
            part_id=movement.part_id,
            movement_type=movement.movement_type.value,
            quantity=movement.quantity,
            previous_stock=movement.previous_stock,
            new_stock=movement.new_stock,
            signed_delta=movement.signed_delta,
            set_point=movement.set_point,
            unit_price=movement.unit_price,
            total_value=movement.total_value,
            currency=movement.currency,
            reference=movement.reference,
            notes=movement.notes,
            from_location=(
                LocationResponse.from_entity(movement.from_location)
                if movement.from_location
                else None
            ),
            to_location=(
                LocationResponse.from_entity(movement.to_location)
                if movement.to_location
                else None
            ),
            performed_by=movement.performed_by,
            approved_by=movement.approved_by,
            idempotency_key=movement.idempotency_key,
            created_at=movement.created_at,
        )


class StockMovementListResponse(BaseModel):
    """Paginated movement list response."""

    transactions: list[StockMovementResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class AlertResponse(BaseModel):
    """Reorder alert response DTO."""

    id: int
    part_id: int
    alert_type: str
    status: str
    priority: str
    current_stock: int
    min_stock_level: int
    message: str
    notes: str | None = None
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    dismissed_by: str | None = None
    dismissed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, alert: ReorderAlert) -> "AlertResponse":
        return cls(
            id=alert.id,  # type: ignore[arg-type]
            part_id=alert.part_id,
            alert_type=alert.alert_type.value,
            status=alert.status.value,
            priority=alert.priority.value,
            current_stock=alert.current_stock,
            min_stock_level=alert.min_stock_level,
            message=alert.message,
            notes=alert.notes,
            acknowledged_by=alert.acknowledged_by,
            acknowledged_at=alert.acknowledged_at,
            resolved_by=alert.resolved_by,
            resolved_at=alert.resolved_at,
            dismissed_by=alert.dismissed_by,
            dismissed_at=alert.dismissed_at,
            created_at=alert.created_at,
            updated_at=alert.updated_at,
        )


class AlertListResponse(BaseModel):
    """Paginated alert list response."""

    alerts: list[AlertResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class AdjustStockResponse(BaseModel):
    """Response for a stock adjustment."""

    part: PartResponse
    transaction: StockMovementResponse
    alert: AlertResponse | None = None
    replayed: bool = False  # True if an idempotency key matched an earlier adjustment


class MovementSummaryResponse(BaseModel):
    """Per-type aggregate of a part's movements."""

    movement_type: str
    total_quantity: int
    total_value: float
    net_change: int
    count: int

    @classmethod
    def from_entity(cls, summary: MovementSummary) -> "MovementSummaryResponse":
        return cls(
            movement_type=summary.movement_type.value,
            total_quantity=summary.total_quantity,
            total_value=summary.total_value,
            net_change=summary.net_change,
            count=summary.count,
        )


class PartMovementSummaryResponse(BaseModel):
    """Movement summary for one part over a time window."""

    part_id: int
    start: datetime | None = None
    end: datetime | None = None
    summary: list[MovementSummaryResponse]


class InventorySummaryResponse(BaseModel):
    """Inventory-wide totals over active parts."""

    total_parts: int
    total_quantity: int
    total_value: float
    in_stock_count: int
    low_stock_count: int
    out_of_stock_count: int
    overstock_count: int
    category_count: int
    open_alert_count: int = 0


class CategoryBreakdownResponse(BaseModel):
    """Totals for one category of active parts."""

    category: str
    total_parts: int
    total_stock: int
    total_value: float
    average_price: float
    low_stock_count: int
    out_of_stock_count: int


class CategoryAnalysisResponse(BaseModel):
    categories: list[CategoryBreakdownResponse]
    total_categories: int
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class InventoryValueSummaryResponse(BaseModel):
    total_parts: int
    total_quantity: int
    total_value: float
    average_part_value: float


class InventoryValueReportResponse(BaseModel):
    """Inventory value: totals, the most valuable parts and value per category."""

    summary: InventoryValueSummaryResponse
    top_value_parts: list[PartResponse]
    category_values: list[CategoryBreakdownResponse]
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DashboardResponse(BaseModel):
    """Landing page data: totals, latest movements and stock by category."""

    summary: InventorySummaryResponse
    recent_transactions: list[StockMovementResponse]
    stock_by_category: list[CategoryBreakdownResponse]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: str
    schema_version: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. PART_NOT_FOUND)
    - kind: taxonomy bucket (ValidationError, NotFoundError, ...)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    kind: str = Field(default="PartStockError", description="Error taxonomy bucket")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict | None = Field(default=None, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
