"""API route modules."""

from partstock.api.routes.alerts import router as alerts_router
from partstock.api.routes.health import router as health_router
from partstock.api.routes.parts import router as parts_router
from partstock.api.routes.reports import router as reports_router
from partstock.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "parts_router",
    "stock_router",
    "alerts_router",
    "reports_router",
]
