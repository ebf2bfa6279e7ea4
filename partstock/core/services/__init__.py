"""Core business services."""

from partstock.core.services.reorder_alerts import (
    AlertAction,
    AlertDecision,
    ReorderAlertEngine,
    alert_type_for,
    decide,
    priority_for,
)
from partstock.core.services.stock_transitions import (
    INBOUND_TYPES,
    OUTBOUND_TYPES,
    StockTransition,
    compute_transition,
    parse_movement_type,
    replay_movements,
    validate_quantity,
)

__all__ = [
    "AlertAction",
    "AlertDecision",
    "ReorderAlertEngine",
    "alert_type_for",
    "decide",
    "priority_for",
    "INBOUND_TYPES",
    "OUTBOUND_TYPES",
    "StockTransition",
    "compute_transition",
    "parse_movement_type",
    "replay_movements",
    "validate_quantity",
]
