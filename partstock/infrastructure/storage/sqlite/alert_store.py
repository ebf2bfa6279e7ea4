"""SQLite implementation of reorder alert storage."""

from datetime import UTC, datetime
from typing import Any

import aiosqlite

from partstock.config import get_logger
from partstock.core.entities.alert import AlertPriority, AlertStatus, AlertType, ReorderAlert
from partstock.core.exceptions import VersionConflictError
from partstock.core.interfaces.alert_store import IReorderAlertStore
from partstock.infrastructure.storage.sqlite.connection import (
    format_timestamp,
    parse_timestamp,
    use_connection,
    use_transaction,
)

logger = get_logger(__name__)

_PRIORITY_ORDER = """
    CASE priority
        WHEN 'CRITICAL' THEN 0
        WHEN 'HIGH' THEN 1
        WHEN 'MEDIUM' THEN 2
        ELSE 3
    END
"""


def _ts(value: datetime | None) -> str | None:
    return format_timestamp(value) if value else None


class SQLiteReorderAlertStore(IReorderAlertStore):
    """SQLite implementation of reorder alert storage."""

    async def get_alert(self, alert_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get alert by ID."""
        async with use_connection(conn) as db:
            cursor = await db.execute("SELECT * FROM reorder_alerts WHERE id = ?", (alert_id,))
            row = await cursor.fetchone()
            return self._row_to_alert(row) if row else None

    async def get_open_alert(self, part_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get the part's ACTIVE or ACKNOWLEDGED alert."""
        async with use_connection(conn) as db:
            cursor = await db.execute(
                """
                SELECT * FROM reorder_alerts
                WHERE part_id = ? AND status IN ('ACTIVE', 'ACKNOWLEDGED')
                """,
                (part_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_alert(row) if row else None

    async def get_latest_alert(self, part_id: int, conn: Any = None) -> ReorderAlert | None:
        """Get the part's most recent alert of any status."""
        async with use_connection(conn) as db:
            cursor = await db.execute(
                """
                SELECT * FROM reorder_alerts
                WHERE part_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (part_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_alert(row) if row else None

    async def create_alert(self, alert: ReorderAlert, conn: Any = None) -> ReorderAlert:
        """Insert a new alert."""
        async with use_transaction(conn) as db:
            try:
                cursor = await db.execute(
                    """
                    INSERT INTO reorder_alerts (
                        part_id, alert_type, status, priority,
                        current_stock, min_stock_level, message, notes,
                        acknowledged_by, acknowledged_at, resolved_by, resolved_at,
                        dismissed_by, dismissed_at, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        alert.part_id,
                        alert.alert_type.value,
                        alert.status.value,
                        alert.priority.value,
                        alert.current_stock,
                        alert.min_stock_level,
                        alert.message,
                        alert.notes,
                        alert.acknowledged_by,
                        _ts(alert.acknowledged_at),
                        alert.resolved_by,
                        _ts(alert.resolved_at),
                        alert.dismissed_by,
                        _ts(alert.dismissed_at),
                        format_timestamp(alert.created_at),
                        format_timestamp(alert.updated_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                # Partial unique index: one open alert per part
                if "reorder_alerts.part_id" in str(e):
                    raise VersionConflictError("ReorderAlert", alert.part_id, None) from e
                raise
            alert.id = cursor.lastrowid
            return alert

    async def update_alert(
        self, alert: ReorderAlert, expected_status: AlertStatus, conn: Any = None
    ) -> ReorderAlert:
        """Write alert changes if its stored status is still expected_status."""
        async with use_transaction(conn) as db:
            cursor = await db.execute(
                """
                UPDATE reorder_alerts SET
                    alert_type = ?,
                    status = ?,
                    priority = ?,
                    current_stock = ?,
                    min_stock_level = ?,
                    message = ?,
                    notes = ?,
                    acknowledged_by = ?,
                    acknowledged_at = ?,
                    resolved_by = ?,
                    resolved_at = ?,
                    dismissed_by = ?,
                    dismissed_at = ?,
                    updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    alert.alert_type.value,
                    alert.status.value,
                    alert.priority.value,
                    alert.current_stock,
                    alert.min_stock_level,
                    alert.message,
                    alert.notes,
                    alert.acknowledged_by,
                    _ts(alert.acknowledged_at),
                    alert.resolved_by,
                    _ts(alert.resolved_at),
                    alert.dismissed_by,
                    _ts(alert.dismissed_at),
                    format_timestamp(alert.updated_at),
                    alert.id,
                    expected_status.value,
                ),
            )
            if cursor.rowcount == 0:
                raise VersionConflictError("ReorderAlert", alert.id, None)
            return alert

    @staticmethod
    def _build_filters(
        status: AlertStatus | None,
        priority: AlertPriority | None,
        part_id: int | None,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if priority is not None:
            clauses.append("priority = ?")
            params.append(priority.value)
        if part_id is not None:
            clauses.append("part_id = ?")
            params.append(part_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    async def list_alerts(
        self,
        status: AlertStatus | None = None,
        priority: AlertPriority | None = None,
        part_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ReorderAlert]:
        """List alerts, highest priority and newest first."""
        where, params = self._build_filters(status, priority, part_id)
        async with use_connection() as db:
            cursor = await db.execute(
                f"""
                SELECT * FROM reorder_alerts {where}
                ORDER BY {_PRIORITY_ORDER}, created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_alert(row) for row in rows]

    async def count_alerts(
        self,
        status: AlertStatus | None = None,
        priority: AlertPriority | None = None,
        part_id: int | None = None,
    ) -> int:
        where, params = self._build_filters(status, priority, part_id)
        async with use_connection() as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM reorder_alerts {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _row_to_alert(row: aiosqlite.Row) -> ReorderAlert:
        """Convert a database row to a ReorderAlert entity."""
        return ReorderAlert(
            id=row["id"],
            part_id=row["part_id"],
            alert_type=AlertType(row["alert_type"]),
            status=AlertStatus(row["status"]),
            priority=AlertPriority(row["priority"]),
            current_stock=row["current_stock"],
            min_stock_level=row["min_stock_level"],
            message=row["message"],
            notes=row["notes"],
            acknowledged_by=row["acknowledged_by"],
            acknowledged_at=parse_timestamp(row["acknowledged_at"]),
            resolved_by=row["resolved_by"],
            resolved_at=parse_timestamp(row["resolved_at"]),
            dismissed_by=row["dismissed_by"],
            dismissed_at=parse_timestamp(row["dismissed_at"]),
            created_at=parse_timestamp(row["created_at"]) or datetime.now(UTC),
            updated_at=parse_timestamp(row["updated_at"]) or datetime.now(UTC),
        )
