"""Reorder alert endpoints."""

from fastapi import APIRouter, Depends, Query

from partstock.api.dependencies import get_actor_id, get_alerts, get_review_alert_use_case
from partstock.application.dto.requests import AlertActionRequest
from partstock.application.dto.responses import AlertListResponse, AlertResponse, ErrorResponse
from partstock.application.use_cases import ReviewAlertUseCase
from partstock.core.entities.alert import AlertPriority, AlertStatus
from partstock.core.exceptions import ValidationError
from partstock.infrastructure.storage.sqlite import SQLiteReorderAlertStore

router = APIRouter(prefix="/api/inventory/alerts", tags=["alerts"])


def parse_alert_status(value: str) -> AlertStatus | None:
    """'all' lifts the status filter."""
    if value.strip().lower() == "all":
        return None
    try:
        return AlertStatus(value.strip().upper())
    except ValueError as e:
        allowed = [s.value for s in AlertStatus] + ["all"]
        raise ValidationError("status", f"must be one of {', '.join(allowed)}", value=value) from e


def parse_alert_priority(value: str | None) -> AlertPriority | None:
    if value is None:
        return None
    try:
        return AlertPriority(value.strip().upper())
    except ValueError as e:
        allowed = [p.value for p in AlertPriority]
        raise ValidationError("priority", f"must be one of {', '.join(allowed)}", value=value) from e


@router.get("", response_model=AlertListResponse, responses={400: {"model": ErrorResponse}})
async def list_alerts(
    status: str = Query(default="ACTIVE", description="Alert status or 'all'"),
    priority: str | None = None,
    part_id: int | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: SQLiteReorderAlertStore = Depends(get_alerts),
) -> AlertListResponse:
    """List reorder alerts, most urgent first."""
    filters = {
        "status": parse_alert_status(status),
        "priority": parse_alert_priority(priority),
        "part_id": part_id,
    }
    alerts = await store.list_alerts(**filters, limit=limit, offset=offset)
    total = await store.count_alerts(**filters)
    return AlertListResponse(
        alerts=[AlertResponse.from_entity(a) for a in alerts],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(alerts) < total,
    )


@router.post(
    "/{alert_id}/acknowledge",
    response_model=AlertResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def acknowledge_alert(
    alert_id: int,
    request: AlertActionRequest | None = None,
    actor_id: str = Depends(get_actor_id),
    use_case: ReviewAlertUseCase = Depends(get_review_alert_use_case),
) -> AlertResponse:
    """ACTIVE -> ACKNOWLEDGED."""
    alert = await use_case.acknowledge(alert_id, request or AlertActionRequest(), actor_id)
    return use_case.to_response(alert)


@router.post(
    "/{alert_id}/dismiss",
    response_model=AlertResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def dismiss_alert(
    alert_id: int,
    request: AlertActionRequest | None = None,
    actor_id: str = Depends(get_actor_id),
    use_case: ReviewAlertUseCase = Depends(get_review_alert_use_case),
) -> AlertResponse:
    """ACTIVE|ACKNOWLEDGED -> DISMISSED."""
    alert = await use_case.dismiss(alert_id, request or AlertActionRequest(), actor_id)
    return use_case.to_response(alert)
