"""Stock adjustment and ledger report endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from partstock.api.dependencies import get_actor_id, get_adjust_stock_use_case, get_ledger
from partstock.api.routes.parts import check_window
from partstock.application.dto.requests import AdjustStockRequest
from partstock.application.dto.responses import (
    AdjustStockResponse,
    ErrorResponse,
    StockMovementListResponse,
    StockMovementResponse,
)
from partstock.application.use_cases import AdjustStockUseCase
from partstock.core.services.stock_transitions import parse_movement_type
from partstock.infrastructure.storage.sqlite import SQLiteMovementLedger

router = APIRouter(prefix="/api/inventory", tags=["stock"])


@router.post(
    "/stock/adjust",
    response_model=AdjustStockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def adjust_stock(
    request: AdjustStockRequest,
    actor_id: str = Depends(get_actor_id),
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> AdjustStockResponse:
    """Apply one stock movement: part write, ledger entry and alert update commit together."""
    result = await use_case.execute(request, actor_id)
    return use_case.to_response(result)


@router.get(
    "/transactions",
    response_model=StockMovementListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_transactions(
    start: datetime | None = None,
    end: datetime | None = None,
    transaction_type: str | None = None,
    part_id: int | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> StockMovementListResponse:
    """All ledger activity in a date range, newest first."""
    start, end = check_window(start, end)
    movement_type = parse_movement_type(transaction_type) if transaction_type else None
    filters = {"start": start, "end": end, "movement_type": movement_type, "part_id": part_id}
    movements = await ledger.list_movements(**filters, limit=limit, offset=offset)
    total = await ledger.count_movements(**filters)
    return StockMovementListResponse(
        transactions=[StockMovementResponse.from_entity(m) for m in movements],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(movements) < total,
    )
