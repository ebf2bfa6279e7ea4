"""SQLite implementation of the append-only movement ledger."""

from datetime import UTC, datetime
from typing import Any

import aiosqlite

from partstock.config import get_logger
from partstock.core.entities.movement import MovementSummary, MovementType, StockMovement
from partstock.core.entities.part import StockLocation
from partstock.core.exceptions import VersionConflictError
from partstock.core.interfaces.movement_ledger import IMovementLedger
from partstock.infrastructure.storage.sqlite.connection import (
    format_timestamp,
    parse_timestamp,
    use_connection,
    use_transaction,
)

logger = get_logger(__name__)


class SQLiteMovementLedger(IMovementLedger):
    """
    SQLite movement ledger.

    Only inserts and reads; the schema's triggers abort any UPDATE or DELETE
    on stock_movements.
    """

    async def append(self, movement: StockMovement, conn: Any = None) -> StockMovement:
        """Record a stock movement."""
        async with use_transaction(conn) as db:
            try:
                cursor = await db.execute(
                    """
                    INSERT INTO stock_movements (
                        part_id, movement_type, quantity, previous_stock, new_stock,
                        signed_delta, set_point, unit_price, total_value, currency,
                        reference, notes, from_location, to_location,
                        performed_by, approved_by, idempotency_key, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        movement.part_id,
                        movement.movement_type.value,
                        movement.quantity,
                        movement.previous_stock,
                        movement.new_stock,
                        movement.signed_delta,
                        movement.set_point,
                        movement.unit_price,
                        movement.total_value,
                        movement.currency,
                        movement.reference,
                        movement.notes,
                        movement.from_location.model_dump_json() if movement.from_location else None,
                        movement.to_location.model_dump_json() if movement.to_location else None,
                        movement.performed_by,
                        movement.approved_by,
                        movement.idempotency_key,
                        format_timestamp(movement.created_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                # Another writer recorded the same idempotency key first
                if movement.idempotency_key and "idempotency_key" in str(e):
                    raise VersionConflictError("StockMovement", movement.part_id, None) from e
                raise
            movement.id = cursor.lastrowid
            logger.info(
                "stock_movement_recorded",
                movement_id=movement.id,
                part_id=movement.part_id,
                type=movement.movement_type.value,
                qty=movement.quantity,
                new_stock=movement.new_stock,
            )
            return movement

    async def get_movement(self, movement_id: int, conn: Any = None) -> StockMovement | None:
        """Get a movement by ID."""
        async with use_connection(conn) as db:
            cursor = await db.execute(
                "SELECT * FROM stock_movements WHERE id = ?", (movement_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def get_by_idempotency_key(
        self, part_id: int, idempotency_key: str, conn: Any = None
    ) -> StockMovement | None:
        """Find a movement previously recorded under an idempotency key."""
        async with use_connection(conn) as db:
            cursor = await db.execute(
                "SELECT * FROM stock_movements WHERE part_id = ? AND idempotency_key = ?",
                (part_id, idempotency_key),
            )
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def list_for_part(
        self, part_id: int, limit: int = 100, offset: int = 0
    ) -> list[StockMovement]:
        """Get movements for a part, newest first."""
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT * FROM stock_movements
                WHERE part_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (part_id, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def count_for_part(self, part_id: int) -> int:
        async with use_connection() as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM stock_movements WHERE part_id = ?", (part_id,)
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _build_filters(
        start: datetime | None,
        end: datetime | None,
        movement_type: MovementType | None,
        part_id: int | None,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if start is not None:
            clauses.append("created_at >= ?")
            params.append(format_timestamp(start))
        if end is not None:
            clauses.append("created_at <= ?")
            params.append(format_timestamp(end))
        if movement_type is not None:
            clauses.append("movement_type = ?")
            params.append(movement_type.value)
        if part_id is not None:
            clauses.append("part_id = ?")
            params.append(part_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    async def list_movements(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
        part_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements in a time window, newest first."""
        where, params = self._build_filters(start, end, movement_type, part_id)
        async with use_connection() as db:
            cursor = await db.execute(
                f"""
                SELECT * FROM stock_movements {where}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def count_movements(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_type: MovementType | None = None,
        part_id: int | None = None,
    ) -> int:
        where, params = self._build_filters(start, end, movement_type, part_id)
        async with use_connection() as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM stock_movements {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def summarize(
        self,
        part_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MovementSummary]:
        """Aggregate quantity, value and net change per movement type."""
        where, params = self._build_filters(start, end, None, part_id)
        async with use_connection() as db:
            cursor = await db.execute(
                f"""
                SELECT
                    movement_type,
                    SUM(quantity) AS total_quantity,
                    SUM(total_value) AS total_value,
                    SUM(signed_delta) AS net_change,
                    COUNT(*) AS count
                FROM stock_movements {where}
                GROUP BY movement_type
                ORDER BY movement_type
                """,
                params,
            )
            rows = await cursor.fetchall()
            return [
                MovementSummary(
                    movement_type=MovementType(row["movement_type"]),
                    total_quantity=row["total_quantity"] or 0,
                    total_value=round(float(row["total_value"] or 0), 2),
                    net_change=row["net_change"] or 0,
                    count=row["count"],
                )
                for row in rows
            ]

    async def net_change(self, part_id: int, conn: Any = None) -> int:
        """Sum of signed deltas recorded for a part."""
        async with use_connection(conn) as db:
            cursor = await db.execute(
                "SELECT COALESCE(SUM(signed_delta), 0) FROM stock_movements WHERE part_id = ?",
                (part_id,),
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        from_location = None
        if row["from_location"]:
            from_location = StockLocation.model_validate_json(row["from_location"])
        to_location = None
        if row["to_location"]:
            to_location = StockLocation.model_validate_json(row["to_location"])

        return StockMovement(
            id=row["id"],
            part_id=row["part_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity=row["quantity"],
            previous_stock=row["previous_stock"],
            new_stock=row["new_stock"],
            signed_delta=row["signed_delta"],
            set_point=row["set_point"],
            unit_price=float(row["unit_price"]),
            total_value=float(row["total_value"]),
            currency=row["currency"],
            reference=row["reference"],
            notes=row["notes"],
            from_location=from_location,
            to_location=to_location,
            performed_by=row["performed_by"],
            approved_by=row["approved_by"],
            idempotency_key=row["idempotency_key"],
            created_at=parse_timestamp(row["created_at"]) or datetime.now(UTC),
        )
