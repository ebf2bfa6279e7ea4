"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from partstock.application.dto.requests import (
    AdjustStockRequest,
    AlertActionRequest,
    CreatePartRequest,
    LocationRequest,
    UpdatePartRequest,
)
from partstock.application.dto.responses import (
    AdjustStockResponse,
    AlertListResponse,
    AlertResponse,
    CategoryAnalysisResponse,
    CategoryBreakdownResponse,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    InventoryValueReportResponse,
    InventoryValueSummaryResponse,
    InventorySummaryResponse,
    LocationResponse,
    MovementSummaryResponse,
    PartListResponse,
    PartMovementSummaryResponse,
    PartResponse,
    StockMovementListResponse,
    StockMovementResponse,
)

__all__ = [
    # Requests
    "AdjustStockRequest",
    "AlertActionRequest",
    "CreatePartRequest",
    "LocationRequest",
    "UpdatePartRequest",
    # Responses
    "AdjustStockResponse",
    "AlertListResponse",
    "AlertResponse",
    "CategoryAnalysisResponse",
    "CategoryBreakdownResponse",
    "DashboardResponse",
    "ErrorResponse",
    "HealthResponse",
    "InventoryValueReportResponse",
    "InventoryValueSummaryResponse",
    "InventorySummaryResponse",
    "LocationResponse",
    "MovementSummaryResponse",
    "PartListResponse",
    "PartMovementSummaryResponse",
    "PartResponse",
    "StockMovementListResponse",
    "StockMovementResponse",
]
