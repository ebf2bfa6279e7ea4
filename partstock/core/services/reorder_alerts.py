"""
Reorder Alert Engine.

Keeps one open alert per part in step with the part's stock level:

    (no alert) --stock <= min--> ACTIVE
    ACTIVE --operator ack--> ACKNOWLEDGED
    ACTIVE|ACKNOWLEDGED --stock rises above min--> RESOLVED
    ACTIVE|ACKNOWLEDGED --operator dismiss--> DISMISSED
    RESOLVED|DISMISSED --stock <= min again--> ACTIVE (new alert)

Evaluation is idempotent: running it again on an unchanged part writes
nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from partstock.config import get_logger
from partstock.core.entities.alert import (
    AlertPriority,
    AlertStatus,
    AlertType,
    ReorderAlert,
)
from partstock.core.entities.part import Part
from partstock.core.exceptions import AlertNotFoundError, InvalidAlertTransitionError
from partstock.core.interfaces.alert_store import IReorderAlertStore

logger = get_logger(__name__)


class AlertAction(str, Enum):
    """What an evaluation decided to do."""

    NONE = "none"
    OPENED = "opened"
    REFRESHED = "refreshed"
    RESOLVED = "resolved"


@dataclass
class AlertDecision:
    """Result of evaluating a part against its alert state."""

    action: AlertAction
    alert: ReorderAlert | None = None
    expected_status: AlertStatus | None = None


def priority_for(current_stock: int, min_stock_level: int) -> AlertPriority:
    """CRITICAL when empty, HIGH at or below half the threshold, MEDIUM otherwise."""
    if current_stock == 0:
        return AlertPriority.CRITICAL
    if current_stock <= min_stock_level / 2:
        return AlertPriority.HIGH
    return AlertPriority.MEDIUM


def alert_type_for(current_stock: int) -> AlertType:
    return AlertType.OUT_OF_STOCK if current_stock == 0 else AlertType.LOW_STOCK


def _message_for(part: Part) -> str:
    if part.current_stock == 0:
        return f"{part.part_number} is out of stock (reorder level {part.min_stock_level})"
    return (
        f"{part.part_number} stock {part.current_stock} is at or below "
        f"reorder level {part.min_stock_level}"
    )


def decide(
    part: Part,
    open_alert: ReorderAlert | None,
    latest_alert: ReorderAlert | None,
    was_low: bool,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> AlertDecision:
    """
    Work out the alert change implied by a part's current stock.

    Args:
        part: Part state after the write being evaluated.
        open_alert: The part's ACTIVE/ACKNOWLEDGED alert, if any.
        latest_alert: The part's most recent alert of any status.
        was_low: Whether the part was at or below threshold before the write.
        actor_id: Actor credited with an automatic resolution.
        now: Clock override for tests.
    """
    now = now or datetime.now(UTC)
    is_low = part.is_reorder_required

    if not is_low:
        if open_alert is None:
            return AlertDecision(AlertAction.NONE)
        resolved = open_alert.model_copy(
            update={
                "status": AlertStatus.RESOLVED,
                "current_stock": part.current_stock,
                "min_stock_level": part.min_stock_level,
                "resolved_by": actor_id,
                "resolved_at": now,
                "updated_at": now,
            }
        )
        return AlertDecision(AlertAction.RESOLVED, resolved, open_alert.status)

    priority = priority_for(part.current_stock, part.min_stock_level)
    alert_type = alert_type_for(part.current_stock)

    if open_alert is not None:
        unchanged = (
            open_alert.priority is priority
            and open_alert.alert_type is alert_type
            and open_alert.current_stock == part.current_stock
            and open_alert.min_stock_level == part.min_stock_level
        )
        if unchanged:
            return AlertDecision(AlertAction.NONE, open_alert)
        refreshed = open_alert.model_copy(
            update={
                "priority": priority,
                "alert_type": alert_type,
                "current_stock": part.current_stock,
                "min_stock_level": part.min_stock_level,
                "message": _message_for(part),
                "updated_at": now,
            }
        )
        return AlertDecision(AlertAction.REFRESHED, refreshed, open_alert.status)

    if not part.is_active:
        return AlertDecision(AlertAction.NONE)

    # A dismissed alert stays quiet until stock recovers and drops again.
    if (
        latest_alert is not None
        and latest_alert.status is AlertStatus.DISMISSED
        and was_low
    ):
        return AlertDecision(AlertAction.NONE, latest_alert)

    opened = ReorderAlert(
        part_id=part.id,  # type: ignore[arg-type]
        alert_type=alert_type,
        status=AlertStatus.ACTIVE,
        priority=priority,
        current_stock=part.current_stock,
        min_stock_level=part.min_stock_level,
        message=_message_for(part),
        created_at=now,
        updated_at=now,
    )
    return AlertDecision(AlertAction.OPENED, opened)


class ReorderAlertEngine:
    """
    Applies alert decisions and operator transitions through an alert store.

    Every method accepts an optional ``conn`` so callers can run it inside
    their own transaction.
    """

    def __init__(self, alert_store: IReorderAlertStore) -> None:
        self._store = alert_store

    async def evaluate(
        self,
        part: Part,
        *,
        was_low: bool,
        actor_id: str | None = None,
        conn: Any = None,
    ) -> AlertDecision:
        """Re-evaluate a part's alert and persist the outcome."""
        open_alert = await self._store.get_open_alert(part.id, conn=conn)  # type: ignore[arg-type]
        latest_alert = None
        if open_alert is None and part.is_reorder_required:
            latest_alert = await self._store.get_latest_alert(part.id, conn=conn)  # type: ignore[arg-type]

        decision = decide(part, open_alert, latest_alert, was_low, actor_id=actor_id)

        if decision.action is AlertAction.OPENED:
            decision.alert = await self._store.create_alert(decision.alert, conn=conn)  # type: ignore[arg-type]
            logger.info(
                "reorder_alert_opened",
                alert_id=decision.alert.id,
                part_id=part.id,
                priority=decision.alert.priority.value,
            )
        elif decision.action in (AlertAction.REFRESHED, AlertAction.RESOLVED):
            decision.alert = await self._store.update_alert(
                decision.alert,  # type: ignore[arg-type]
                expected_status=decision.expected_status,  # type: ignore[arg-type]
                conn=conn,
            )
            logger.info(
                f"reorder_alert_{decision.action.value}",
                alert_id=decision.alert.id,
                part_id=part.id,
                status=decision.alert.status.value,
                priority=decision.alert.priority.value,
            )

        return decision

    async def acknowledge(
        self,
        alert_id: int,
        actor_id: str,
        notes: str | None = None,
        conn: Any = None,
    ) -> ReorderAlert:
        """ACTIVE -> ACKNOWLEDGED."""
        alert = await self._require(alert_id, conn)
        if alert.status is not AlertStatus.ACTIVE:
            raise InvalidAlertTransitionError(
                alert.id, alert.status.value, AlertStatus.ACKNOWLEDGED.value
            )
        now = datetime.now(UTC)
        updated = alert.model_copy(
            update={
                "status": AlertStatus.ACKNOWLEDGED,
                "acknowledged_by": actor_id,
                "acknowledged_at": now,
                "notes": notes if notes is not None else alert.notes,
                "updated_at": now,
            }
        )
        updated = await self._store.update_alert(updated, expected_status=alert.status, conn=conn)
        logger.info("reorder_alert_acknowledged", alert_id=alert.id, actor_id=actor_id)
        return updated

    async def dismiss(
        self,
        alert_id: int,
        actor_id: str,
        notes: str | None = None,
        conn: Any = None,
    ) -> ReorderAlert:
        """ACTIVE|ACKNOWLEDGED -> DISMISSED."""
        alert = await self._require(alert_id, conn)
        if not alert.is_open:
            raise InvalidAlertTransitionError(
                alert.id, alert.status.value, AlertStatus.DISMISSED.value
            )
        now = datetime.now(UTC)
        updated = alert.model_copy(
            update={
                "status": AlertStatus.DISMISSED,
                "dismissed_by": actor_id,
                "dismissed_at": now,
                "notes": notes if notes is not None else alert.notes,
                "updated_at": now,
            }
        )
        updated = await self._store.update_alert(updated, expected_status=alert.status, conn=conn)
        logger.info("reorder_alert_dismissed", alert_id=alert.id, actor_id=actor_id)
        return updated

    async def dismiss_open_alert(
        self, part_id: int, actor_id: str, notes: str | None = None, conn: Any = None
    ) -> ReorderAlert | None:
        """Dismiss the part's open alert if it has one."""
        open_alert = await self._store.get_open_alert(part_id, conn=conn)
        if open_alert is None:
            return None
        return await self.dismiss(open_alert.id, actor_id, notes=notes, conn=conn)  # type: ignore[arg-type]

    async def _require(self, alert_id: int, conn: Any) -> ReorderAlert:
        alert = await self._store.get_alert(alert_id, conn=conn)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert
