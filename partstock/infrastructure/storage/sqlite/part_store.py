"""SQLite implementation of part record storage."""

from datetime import UTC, datetime
from typing import Any

import aiosqlite

from partstock.config import get_logger
from partstock.core.entities.part import Part, StockLocation, StockStatus, normalize_part_number
from partstock.core.exceptions import DuplicatePartNumberError, VersionConflictError
from partstock.core.interfaces.part_store import IPartStore
from partstock.infrastructure.storage.sqlite.connection import (
    format_timestamp,
    parse_timestamp,
    use_connection,
    use_transaction,
)

logger = get_logger(__name__)

_STOCK_STATUS_SQL = {
    StockStatus.OUT_OF_STOCK: "current_stock = 0",
    StockStatus.LOW_STOCK: "current_stock > 0 AND current_stock <= min_stock_level",
    StockStatus.OVERSTOCK: (
        "current_stock > min_stock_level AND current_stock > 0 "
        "AND current_stock >= max_stock_level"
    ),
    StockStatus.IN_STOCK: (
        "current_stock > 0 AND current_stock > min_stock_level "
        "AND current_stock < max_stock_level"
    ),
}


class SQLitePartStore(IPartStore):
    """SQLite implementation of part record storage."""

    async def create_part(self, part: Part, conn: Any = None) -> Part:
        """Create a new part."""
        part.ensure_valid_policy()
        now = datetime.now(UTC)
        part.created_at = now
        part.updated_at = now
        part.version = 0
        async with use_transaction(conn) as db:
            try:
                cursor = await db.execute(
                    """
                    INSERT INTO parts (
                        part_number, name, description, category, manufacturer, supplier,
                        current_stock, min_stock_level, max_stock_level,
                        unit_price, currency, warehouse, section, shelf, bin,
                        is_active, last_restock_date, version,
                        created_by, updated_by, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        part.part_number,
                        part.name,
                        part.description,
                        part.category,
                        part.manufacturer,
                        part.supplier,
                        part.current_stock,
                        part.min_stock_level,
                        part.max_stock_level,
                        part.unit_price,
                        part.currency,
                        part.location.warehouse,
                        part.location.section,
                        part.location.shelf,
                        part.location.bin,
                        int(part.is_active),
                        format_timestamp(part.last_restock_date) if part.last_restock_date else None,
                        part.version,
                        part.created_by,
                        part.updated_by,
                        format_timestamp(part.created_at),
                        format_timestamp(part.updated_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "part_number" in str(e):
                    raise DuplicatePartNumberError(part.part_number) from e
                raise
            part.id = cursor.lastrowid
            logger.info("part_created", part_id=part.id, part_number=part.part_number)
            return part

    async def get_part(self, part_id: int, conn: Any = None) -> Part | None:
        """Get part by ID."""
        async with use_connection(conn) as db:
            cursor = await db.execute("SELECT * FROM parts WHERE id = ?", (part_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_part(row)

    async def get_part_by_number(self, part_number: str, conn: Any = None) -> Part | None:
        """Get part by part number."""
        try:
            normalized = normalize_part_number(part_number)
        except ValueError:
            return None
        async with use_connection(conn) as db:
            cursor = await db.execute(
                "SELECT * FROM parts WHERE part_number = ?", (normalized,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_part(row)

    @staticmethod
    def _build_filters(
        search: str | None,
        category: str | None,
        stock_status: StockStatus | None,
        reorder_only: bool,
        include_inactive: bool,
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if not include_inactive:
            clauses.append("is_active = 1")
        if search:
            pattern = f"%{search.strip()}%"
            clauses.append(
                "(part_number LIKE ? OR name LIKE ? OR description LIKE ? OR manufacturer LIKE ?)"
            )
            params.extend([pattern] * 4)
        if category:
            clauses.append("category = ?")
            params.append(category)
        if stock_status is not None:
            clauses.append(f"({_STOCK_STATUS_SQL[stock_status]})")
        if reorder_only:
            clauses.append("current_stock <= min_stock_level")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    async def list_parts(
        self,
        search: str | None = None,
        category: str | None = None,
        stock_status: StockStatus | None = None,
        reorder_only: bool = False,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Part]:
        """List parts with filters, ordered by part number."""
        where, params = self._build_filters(
            search, category, stock_status, reorder_only, include_inactive
        )
        async with use_connection() as db:
            cursor = await db.execute(
                f"SELECT * FROM parts {where} ORDER BY part_number LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_part(row) for row in rows]

    async def count_parts(
        self,
        search: str | None = None,
        category: str | None = None,
        stock_status: StockStatus | None = None,
        reorder_only: bool = False,
        include_inactive: bool = False,
    ) -> int:
        """Count parts matching the list filters."""
        where, params = self._build_filters(
            search, category, stock_status, reorder_only, include_inactive
        )
        async with use_connection() as db:
            cursor = await db.execute(f"SELECT COUNT(*) FROM parts {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def write_stock(self, part: Part, expected_version: int, conn: Any = None) -> Part:
        """Write current_stock under the version guard."""
        now = datetime.now(UTC)
        async with use_transaction(conn) as db:
            cursor = await db.execute(
                """
                UPDATE parts SET
                    current_stock = ?,
                    last_restock_date = ?,
                    version = version + 1,
                    updated_by = ?,
                    updated_at = ?
                WHERE id = ? AND version = ?
                """,
                (
                    part.current_stock,
                    format_timestamp(part.last_restock_date) if part.last_restock_date else None,
                    part.updated_by,
                    format_timestamp(now),
                    part.id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                raise VersionConflictError("Part", part.id, expected_version)
        return part.model_copy(update={"version": expected_version + 1, "updated_at": now})

    async def update_details(self, part: Part, expected_version: int, conn: Any = None) -> Part:
        """Write non-quantity fields under the version guard."""
        part.ensure_valid_policy()
        now = datetime.now(UTC)
        async with use_transaction(conn) as db:
            cursor = await db.execute(
                """
                UPDATE parts SET
                    name = ?,
                    description = ?,
                    category = ?,
                    manufacturer = ?,
                    supplier = ?,
                    min_stock_level = ?,
                    max_stock_level = ?,
                    unit_price = ?,
                    currency = ?,
                    warehouse = ?,
                    section = ?,
                    shelf = ?,
                    bin = ?,
                    is_active = ?,
                    version = version + 1,
                    updated_by = ?,
                    updated_at = ?
                WHERE id = ? AND version = ?
                """,
                (
                    part.name,
                    part.description,
                    part.category,
                    part.manufacturer,
                    part.supplier,
                    part.min_stock_level,
                    part.max_stock_level,
                    part.unit_price,
                    part.currency,
                    part.location.warehouse,
                    part.location.section,
                    part.location.shelf,
                    part.location.bin,
                    int(part.is_active),
                    part.updated_by,
                    format_timestamp(now),
                    part.id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                raise VersionConflictError("Part", part.id, expected_version)
        logger.info("part_updated", part_id=part.id, version=expected_version + 1)
        return part.model_copy(update={"version": expected_version + 1, "updated_at": now})

    async def list_low_stock(self, limit: int = 100, offset: int = 0) -> list[Part]:
        """List active parts at or below threshold, emptiest first."""
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT * FROM parts
                WHERE is_active = 1 AND current_stock <= min_stock_level
                ORDER BY current_stock ASC, part_number ASC
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_part(row) for row in rows]

    async def get_summary(self) -> dict[str, Any]:
        """Aggregate totals over active parts."""
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT
                    COUNT(*) AS total_parts,
                    COALESCE(SUM(current_stock), 0) AS total_quantity,
                    COALESCE(SUM(current_stock * unit_price), 0) AS total_value,
                    COALESCE(SUM(CASE WHEN current_stock = 0 THEN 1 ELSE 0 END), 0)
                        AS out_of_stock_count,
                    COALESCE(SUM(CASE WHEN current_stock > 0
                        AND current_stock <= min_stock_level THEN 1 ELSE 0 END), 0)
                        AS low_stock_count,
                    COALESCE(SUM(CASE WHEN current_stock > min_stock_level
                        AND current_stock > 0 THEN 1 ELSE 0 END), 0) AS in_stock_count,
                    COALESCE(SUM(CASE WHEN current_stock > min_stock_level
                        AND current_stock > 0
                        AND current_stock >= max_stock_level THEN 1 ELSE 0 END), 0)
                        AS overstock_count,
                    COUNT(DISTINCT category) AS category_count
                FROM parts
                WHERE is_active = 1
                """
            )
            row = await cursor.fetchone()
            return {
                "total_parts": row["total_parts"],
                "total_quantity": row["total_quantity"],
                "total_value": round(float(row["total_value"]), 2),
                "in_stock_count": row["in_stock_count"],
                "low_stock_count": row["low_stock_count"],
                "out_of_stock_count": row["out_of_stock_count"],
                "overstock_count": row["overstock_count"],
                "category_count": row["category_count"],
            }

    async def get_category_breakdown(self) -> list[dict[str, Any]]:
        """Per-category stock, value and shortage counts over active parts."""
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT
                    category,
                    COUNT(*) AS total_parts,
                    SUM(current_stock) AS total_stock,
                    SUM(current_stock * unit_price) AS total_value,
                    AVG(unit_price) AS average_price,
                    SUM(CASE WHEN current_stock > 0
                        AND current_stock <= min_stock_level THEN 1 ELSE 0 END) AS low_stock_count,
                    SUM(CASE WHEN current_stock = 0 THEN 1 ELSE 0 END) AS out_of_stock_count
                FROM parts
                WHERE is_active = 1
                GROUP BY category
                ORDER BY total_value DESC, category
                """
            )
            rows = await cursor.fetchall()
            return [
                {
                    "category": row["category"],
                    "total_parts": row["total_parts"],
                    "total_stock": row["total_stock"],
                    "total_value": round(float(row["total_value"]), 2),
                    "average_price": round(float(row["average_price"]), 2),
                    "low_stock_count": row["low_stock_count"],
                    "out_of_stock_count": row["out_of_stock_count"],
                }
                for row in rows
            ]

    async def get_value_summary(self) -> dict[str, Any]:
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT
                    COUNT(*) AS total_parts,
                    COALESCE(SUM(current_stock), 0) AS total_quantity,
                    COALESCE(SUM(current_stock * unit_price), 0) AS total_value,
                    COALESCE(AVG(current_stock * unit_price), 0) AS average_part_value
                FROM parts
                WHERE is_active = 1
                """
            )
            row = await cursor.fetchone()
            return {
                "total_parts": row["total_parts"],
                "total_quantity": row["total_quantity"],
                "total_value": round(float(row["total_value"]), 2),
                "average_part_value": round(float(row["average_part_value"]), 2),
            }

    async def list_top_value_parts(self, limit: int = 10) -> list[Part]:
        async with use_connection() as db:
            cursor = await db.execute(
                """
                SELECT * FROM parts
                WHERE is_active = 1
                ORDER BY current_stock * unit_price DESC, part_number
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_part(row) for row in rows]

    @staticmethod
    def _row_to_part(row: aiosqlite.Row) -> Part:
        """Convert a database row to a Part entity."""
        return Part(
            id=row["id"],
            part_number=row["part_number"],
            name=row["name"],
            description=row["description"],
            category=row["category"],
            manufacturer=row["manufacturer"],
            supplier=row["supplier"],
            current_stock=row["current_stock"],
            min_stock_level=row["min_stock_level"],
            max_stock_level=row["max_stock_level"],
            unit_price=float(row["unit_price"]),
            currency=row["currency"],
            location=StockLocation(
                warehouse=row["warehouse"],
                section=row["section"],
                shelf=row["shelf"],
                bin=row["bin"],
            ),
            is_active=bool(row["is_active"]),
            last_restock_date=parse_timestamp(row["last_restock_date"]),
            version=row["version"],
            created_by=row["created_by"],
            updated_by=row["updated_by"],
            created_at=parse_timestamp(row["created_at"]) or datetime.now(UTC),
            updated_at=parse_timestamp(row["updated_at"]) or datetime.now(UTC),
        )
