"""Inventory report endpoints."""

from fastapi import APIRouter, Depends, Query

from partstock.api.dependencies import get_alerts, get_ledger, get_parts
from partstock.application.dto.responses import (
    CategoryAnalysisResponse,
    CategoryBreakdownResponse,
    DashboardResponse,
    InventorySummaryResponse,
    InventoryValueReportResponse,
    InventoryValueSummaryResponse,
    PartListResponse,
    PartResponse,
    StockMovementResponse,
)
from partstock.core.entities.alert import AlertStatus
from partstock.infrastructure.storage.sqlite import (
    SQLiteMovementLedger,
    SQLitePartStore,
    SQLiteReorderAlertStore,
)

router = APIRouter(prefix="/api/inventory", tags=["reports"])

RECENT_TRANSACTIONS = 5


async def build_summary(
    store: SQLitePartStore, alerts: SQLiteReorderAlertStore
) -> InventorySummaryResponse:
    summary = await store.get_summary()
    open_alerts = await alerts.count_alerts(status=AlertStatus.ACTIVE) + await alerts.count_alerts(
        status=AlertStatus.ACKNOWLEDGED
    )
    return InventorySummaryResponse(**summary, open_alert_count=open_alerts)


@router.get("/reports/low-stock", response_model=PartListResponse)
async def low_stock_report(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: SQLitePartStore = Depends(get_parts),
) -> PartListResponse:
    """Active parts at or below their reorder threshold, emptiest first."""
    parts = await store.list_low_stock(limit=limit, offset=offset)
    total = await store.count_parts(reorder_only=True)
    return PartListResponse(
        parts=[PartResponse.from_entity(p) for p in parts],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(parts) < total,
    )


@router.get("/reports/summary", response_model=InventorySummaryResponse)
async def inventory_summary(
    store: SQLitePartStore = Depends(get_parts),
    alerts: SQLiteReorderAlertStore = Depends(get_alerts),
) -> InventorySummaryResponse:
    """Inventory-wide totals over active parts."""
    return await build_summary(store, alerts)


@router.get("/reports/category-analysis", response_model=CategoryAnalysisResponse)
async def category_analysis(
    store: SQLitePartStore = Depends(get_parts),
) -> CategoryAnalysisResponse:
    """Stock, value, average price and shortages per category, highest value first."""
    categories = [CategoryBreakdownResponse(**c) for c in await store.get_category_breakdown()]
    return CategoryAnalysisResponse(categories=categories, total_categories=len(categories))


@router.get("/reports/inventory-value", response_model=InventoryValueReportResponse)
async def inventory_value_report(
    top: int = Query(default=10, ge=1, le=100, description="Number of top-value parts"),
    store: SQLitePartStore = Depends(get_parts),
) -> InventoryValueReportResponse:
    """Value totals, the most valuable parts and value per category."""
    summary = await store.get_value_summary()
    top_parts = await store.list_top_value_parts(limit=top)
    categories = await store.get_category_breakdown()
    return InventoryValueReportResponse(
        summary=InventoryValueSummaryResponse(**summary),
        top_value_parts=[PartResponse.from_entity(p) for p in top_parts],
        category_values=[CategoryBreakdownResponse(**c) for c in categories],
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    store: SQLitePartStore = Depends(get_parts),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
    alerts: SQLiteReorderAlertStore = Depends(get_alerts),
) -> DashboardResponse:
    """Totals, the latest movements and stock by category in one call."""
    recent = await ledger.list_movements(limit=RECENT_TRANSACTIONS)
    categories = await store.get_category_breakdown()
    return DashboardResponse(
        summary=await build_summary(store, alerts),
        recent_transactions=[StockMovementResponse.from_entity(m) for m in recent],
        stock_by_category=[CategoryBreakdownResponse(**c) for c in categories],
    )
