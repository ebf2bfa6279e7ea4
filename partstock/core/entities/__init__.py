"""Core domain entities."""

from partstock.core.entities.alert import (
    OPEN_ALERT_STATUSES,
    AlertPriority,
    AlertStatus,
    AlertType,
    ReorderAlert,
)
from partstock.core.entities.movement import (
    OPENING_BALANCE_REFERENCE,
    MovementSummary,
    MovementType,
    StockMovement,
)
from partstock.core.entities.part import (
    Part,
    StockLocation,
    StockStatus,
    normalize_part_number,
)

__all__ = [
    # Part
    "Part",
    "StockLocation",
    "StockStatus",
    "normalize_part_number",
    # Movement
    "MovementType",
    "MovementSummary",
    "StockMovement",
    "OPENING_BALANCE_REFERENCE",
    # Alert
    "ReorderAlert",
    "AlertStatus",
    "AlertPriority",
    "AlertType",
    "OPEN_ALERT_STATUSES",
]
