"""
Dependency injection container for FastAPI.

Provides stores, use cases and the calling actor to route handlers.
"""

from functools import lru_cache

from fastapi import Header

from partstock.application.use_cases import (
    AdjustStockUseCase,
    CreatePartUseCase,
    DeactivatePartUseCase,
    ReviewAlertUseCase,
    UpdatePartUseCase,
)
from partstock.config import Settings, get_settings
from partstock.core.exceptions import ValidationError
from partstock.infrastructure.storage.sqlite import (
    SQLiteMovementLedger,
    SQLitePartStore,
    SQLiteReorderAlertStore,
    get_alert_store,
    get_movement_ledger,
    get_part_store,
)

ACTOR_HEADER = "X-Actor-Id"


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


async def get_actor_id(
    x_actor_id: str | None = Header(default=None, alias=ACTOR_HEADER),
) -> str:
    """Authenticated actor, as forwarded by the upstream auth layer."""
    if x_actor_id is None or not x_actor_id.strip():
        raise ValidationError(
            "actor_id", f"missing {ACTOR_HEADER} header"
        )
    return x_actor_id.strip()


# Store dependencies
async def get_parts() -> SQLitePartStore:
    """Get part store."""
    return await get_part_store()


async def get_ledger() -> SQLiteMovementLedger:
    """Get movement ledger."""
    return await get_movement_ledger()


async def get_alerts() -> SQLiteReorderAlertStore:
    """Get reorder alert store."""
    return await get_alert_store()


# Use case dependencies
def get_adjust_stock_use_case() -> AdjustStockUseCase:
    """Get adjust stock use case."""
    return AdjustStockUseCase()


def get_create_part_use_case() -> CreatePartUseCase:
    """Get create part use case."""
    return CreatePartUseCase()


def get_update_part_use_case() -> UpdatePartUseCase:
    """Get update part use case."""
    return UpdatePartUseCase()


def get_deactivate_part_use_case() -> DeactivatePartUseCase:
    """Get deactivate part use case."""
    return DeactivatePartUseCase()


def get_review_alert_use_case() -> ReviewAlertUseCase:
    """Get review alert use case."""
    return ReviewAlertUseCase()
