"""Reorder alert entities."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class AlertStatus(str, Enum):
    """Lifecycle states of a reorder alert."""

    ACTIVE = "ACTIVE"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"

    @property
    def is_open(self) -> bool:
        return self in OPEN_ALERT_STATUSES


OPEN_ALERT_STATUSES = frozenset({AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED})


class AlertPriority(str, Enum):
    """Alert urgency, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(AlertPriority).index(self)


class AlertType(str, Enum):
    """What condition raised the alert."""

    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class ReorderAlert(BaseModel):
    """
    Notification that a part needs restocking.

    A part has at most one open (ACTIVE or ACKNOWLEDGED) alert. Closed alerts
    are kept as history.
    """

    id: int | None = None
    part_id: int
    alert_type: AlertType = AlertType.LOW_STOCK
    status: AlertStatus = AlertStatus.ACTIVE
    priority: AlertPriority = AlertPriority.MEDIUM
    current_stock: int = 0
    min_stock_level: int = 0
    message: str = ""
    notes: str | None = None

    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    dismissed_by: str | None = None
    dismissed_at: datetime | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_open(self) -> bool:
        return self.status.is_open
