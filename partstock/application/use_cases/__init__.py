"""Application use cases."""

from partstock.application.use_cases.adjust_stock import AdjustStockResult, AdjustStockUseCase
from partstock.application.use_cases.create_part import CreatePartResult, CreatePartUseCase
from partstock.application.use_cases.deactivate_part import (
    DeactivatePartResult,
    DeactivatePartUseCase,
)
from partstock.application.use_cases.review_alert import ReviewAlertUseCase
from partstock.application.use_cases.update_part import UpdatePartResult, UpdatePartUseCase

__all__ = [
    "AdjustStockUseCase",
    "AdjustStockResult",
    "CreatePartUseCase",
    "CreatePartResult",
    "UpdatePartUseCase",
    "UpdatePartResult",
    "DeactivatePartUseCase",
    "DeactivatePartResult",
    "ReviewAlertUseCase",
]
