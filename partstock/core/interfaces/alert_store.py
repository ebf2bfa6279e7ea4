"""Abstract interface for reorder alert storage."""

from abc import ABC, abstractmethod
from typing import Any

from partstock.core.entities.alert import AlertPriority, AlertStatus, ReorderAlert


class IReorderAlertStore(ABC):
    """Interface for reorder alert persistence."""

    @abstractmethod
    async def get_alert(self, alert_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get alert by ID."""
        pass

    @abstractmethod
    async def get_open_alert(self, part_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get the ACTIVE or ACKNOWLEDGED alert of a part, if any."""
        pass

    @abstractmethod
    async def get_latest_alert(self, part_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get the most recently created alert of a part regardless of status."""
        pass

    @abstractmethod
    async def create_alert(self, alert: ReorderAlert, conn: Any = None) -> ReorderAlert:
        """Insert a new alert."""
        pass

    @abstractmethod
    async def update_alert(
        self, alert: ReorderAlert, expected_status: AlertStatus, conn: Any = None
    ) -> ReorderAlert:
        """
        Persist alert changes if the stored status still equals expected_status.

        Raises VersionConflictError otherwise.
        """
        pass

    @abstractmethod
    async def list_alerts(
        self,
        status: AlertStatus | None = None,
        priority: AlertPriority | None = None,
        part_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ReorderAlert]:
        """List alerts, highest priority and newest first."""
        pass

    @abstractmethod
    async def count_alerts(
        self,
        status: AlertStatus | None = None,
        priority: AlertPriority | None = None,
        part_id: int | None = None,
    ) -> int:
        """Count alerts matching the same filters as list_alerts."""
        pass
