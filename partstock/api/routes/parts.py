"""Part record endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, status

from partstock.api.dependencies import (
    get_actor_id,
    get_create_part_use_case,
    get_deactivate_part_use_case,
    get_ledger,
    get_parts,
    get_update_part_use_case,
)
from partstock.application.dto.requests import CreatePartRequest, UpdatePartRequest
from partstock.application.dto.responses import (
    ErrorResponse,
    MovementSummaryResponse,
    PartListResponse,
    PartMovementSummaryResponse,
    PartResponse,
    StockMovementListResponse,
    StockMovementResponse,
)
from partstock.application.use_cases import (
    CreatePartUseCase,
    DeactivatePartUseCase,
    UpdatePartUseCase,
)
from partstock.core.entities.part import StockStatus
from partstock.core.exceptions import PartNotFoundError, ValidationError
from partstock.infrastructure.storage.sqlite import SQLiteMovementLedger, SQLitePartStore

router = APIRouter(prefix="/api/inventory/parts", tags=["parts"])

STOCK_STATUS_FILTERS: dict[str, StockStatus | None] = {
    "in": StockStatus.IN_STOCK,
    "low": StockStatus.LOW_STOCK,
    "out": StockStatus.OUT_OF_STOCK,
    "overstock": StockStatus.OVERSTOCK,
    "reorder": None,
}


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive query datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def check_window(start: datetime | None, end: datetime | None) -> tuple[datetime | None, datetime | None]:
    start, end = as_utc(start), as_utc(end)
    if start and end and start > end:
        raise ValidationError("start", "must not be after end", value=start.isoformat())
    return start, end


def parse_stock_status(value: str | None) -> tuple[StockStatus | None, bool]:
    """Map the stock_status query value to (status filter, reorder_only)."""
    if value is None:
        return None, False
    key = value.strip().lower()
    if key not in STOCK_STATUS_FILTERS:
        raise ValidationError(
            "stock_status",
            f"must be one of {', '.join(STOCK_STATUS_FILTERS)}",
            value=value,
        )
    return STOCK_STATUS_FILTERS[key], key == "reorder"


@router.post(
    "",
    response_model=PartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_part(
    request: CreatePartRequest,
    actor_id: str = Depends(get_actor_id),
    use_case: CreatePartUseCase = Depends(get_create_part_use_case),
) -> PartResponse:
    """Register a part. Opening stock is booked as an IN movement."""
    result = await use_case.execute(request, actor_id)
    return use_case.to_response(result)


@router.get("", response_model=PartListResponse)
async def list_parts(
    search: str | None = None,
    category: str | None = None,
    stock_status: str | None = Query(default=None, description="in, low, out, overstock or reorder"),
    include_inactive: bool = False,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: SQLitePartStore = Depends(get_parts),
) -> PartListResponse:
    """List parts with filters and pagination."""
    status_filter, reorder_only = parse_stock_status(stock_status)
    filters = {
        "search": search,
        "category": category,
        "stock_status": status_filter,
        "reorder_only": reorder_only,
        "include_inactive": include_inactive,
    }
    parts = await store.list_parts(**filters, limit=limit, offset=offset)
    total = await store.count_parts(**filters)
    return PartListResponse(
        parts=[PartResponse.from_entity(p) for p in parts],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(parts) < total,
    )


@router.get(
    "/{part_id}",
    response_model=PartResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_part(
    part_id: int,
    store: SQLitePartStore = Depends(get_parts),
) -> PartResponse:
    """Get a part by ID."""
    part = await store.get_part(part_id)
    if part is None:
        raise PartNotFoundError(part_id)
    return PartResponse.from_entity(part)


@router.patch(
    "/{part_id}",
    response_model=PartResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_part(
    part_id: int,
    request: UpdatePartRequest,
    actor_id: str = Depends(get_actor_id),
    use_case: UpdatePartUseCase = Depends(get_update_part_use_case),
) -> PartResponse:
    """Update non-quantity part attributes."""
    result = await use_case.execute(part_id, request, actor_id)
    return use_case.to_response(result)


@router.delete(
    "/{part_id}",
    response_model=PartResponse,
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_part(
    part_id: int,
    actor_id: str = Depends(get_actor_id),
    use_case: DeactivatePartUseCase = Depends(get_deactivate_part_use_case),
) -> PartResponse:
    """Soft-delete a part. Its movement history is kept."""
    result = await use_case.execute(part_id, actor_id)
    return use_case.to_response(result)


@router.get(
    "/{part_id}/transactions",
    response_model=StockMovementListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_part_transactions(
    part_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: SQLitePartStore = Depends(get_parts),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> StockMovementListResponse:
    """Movement history of a part, newest first."""
    if await store.get_part(part_id) is None:
        raise PartNotFoundError(part_id)
    movements = await ledger.list_for_part(part_id, limit=limit, offset=offset)
    total = await ledger.count_for_part(part_id)
    return StockMovementListResponse(
        transactions=[StockMovementResponse.from_entity(m) for m in movements],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(movements) < total,
    )


@router.get(
    "/{part_id}/transactions/summary",
    response_model=PartMovementSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_part_transaction_summary(
    part_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
    store: SQLitePartStore = Depends(get_parts),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> PartMovementSummaryResponse:
    """Per-type totals of a part's movements over an optional window."""
    if await store.get_part(part_id) is None:
        raise PartNotFoundError(part_id)
    start, end = check_window(start, end)
    summary = await ledger.summarize(part_id, start=start, end=end)
    return PartMovementSummaryResponse(
        part_id=part_id,
        start=start,
        end=end,
        summary=[MovementSummaryResponse.from_entity(s) for s in summary],
    )
