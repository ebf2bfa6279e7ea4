"""
Versioned schema migrations for the stock ledger database.

Migration files are named ``vNNN_name.sql`` and recorded in ``schema_migrations``
with a checksum. ``verify_schema_integrity`` also checks that every part's stock
equals the sum of its ledger movements.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from partstock.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
FILENAME_PATTERN = re.compile(r"v(\d+)_(.+)\.sql")

# Schema objects the adjustment path depends on, grouped by check name.
LEDGER_OBJECTS = (
    ("ledger_tables", "table", ("parts", "stock_movements", "reorder_alerts", "schema_migrations")),
    ("ledger_triggers", "trigger", ("trg_stock_movements_no_update", "trg_stock_movements_no_delete")),
    ("ledger_indexes", "index", ("idx_movements_idempotency", "idx_alerts_one_open_per_part")),
)


@dataclass(frozen=True)
class Migration:
    """One ``vNNN_name.sql`` file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        match = FILENAME_PATTERN.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


@dataclass
class MigrationStatus:
    exists: bool
    current_version: str | None = None
    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)


@dataclass
class SchemaCheck:
    """Outcome of one integrity check run by ``verify_schema_integrity``."""

    name: str
    passed: bool
    detail: dict = field(default_factory=dict)


async def _applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    """Highest applied schema version, or None on an empty database."""
    try:
        cursor = await conn.execute("SELECT MAX(version) FROM schema_migrations")
    except aiosqlite.OperationalError:
        return None
    row = await cursor.fetchone()
    return row[0] if row else None


def discover_migrations(migrations_dir: Path | None = None) -> list[Migration]:
    migrations = []
    for path in sorted((migrations_dir or MIGRATIONS_DIR).glob("v*.sql")):
        try:
            migrations.append(Migration.from_file(path))
        except ValueError as e:
            logger.warning("migration_file_skipped", path=str(path), error=str(e))
    return migrations


async def _apply(conn: aiosqlite.Connection, migration: Migration) -> MigrationResult:
    started = time.perf_counter()
    log = logger.bind(version=migration.version, migration=migration.name)
    log.info("migration_applying")
    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        elapsed = int((time.perf_counter() - started) * 1000)
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        log.error("migration_failed", error=str(e))
        return MigrationResult(
            migration.version,
            migration.name,
            success=False,
            execution_time_ms=int((time.perf_counter() - started) * 1000),
            error=str(e),
        )
    log.info("migration_applied", execution_time_ms=elapsed)
    return MigrationResult(migration.version, migration.name, success=True, execution_time_ms=elapsed)


def _snapshot(db_path: Path) -> Path:
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    backup = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup)
    logger.info("database_snapshot_taken", backup_path=str(backup))
    return backup


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path | None = None,
) -> list[MigrationResult]:
    """
    Apply every pending migration in version order.

    Stops at the first failure or at an applied migration whose file changed.
    When ``create_backup_before`` is set and the database already exists, it is
    copied first and restored if any migration fails.

    Returns:
        One result per migration attempted; empty when already up to date.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    backup = _snapshot(db_path) if create_backup_before and db_path.exists() else None

    results: list[MigrationResult] = []
    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await _applied_checksums(conn)

            for migration in discover_migrations(migrations_dir):
                recorded = applied.get(migration.version)
                if recorded is not None:
                    if recorded != migration.checksum:
                        logger.error("migration_checksum_changed", version=migration.version)
                        break
                    continue
                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception:
        if backup:
            shutil.copy2(backup, db_path)
            logger.error("database_restored_from_snapshot", backup_path=str(backup))
        raise

    if backup:
        if all(r.success for r in results):
            backup.unlink()
        else:
            shutil.copy2(backup, db_path)
            logger.error("database_restored_from_snapshot", backup_path=str(backup))
    logger.info("database_initialized", db_path=str(db_path), applied=len(results))
    return results


async def get_migration_status(db_path: Path | None = None) -> MigrationStatus:
    db_path = db_path or get_settings().storage.db_path
    versions = [m.version for m in discover_migrations()]
    if not db_path.exists():
        return MigrationStatus(exists=False, pending=versions)

    async with aiosqlite.connect(db_path) as conn:
        applied = await _applied_checksums(conn)
        return MigrationStatus(
            exists=True,
            current_version=await get_current_version(conn),
            applied=sorted(applied),
            pending=[v for v in versions if v not in applied],
        )


async def verify_schema_integrity(db_path: Path | None = None) -> list[SchemaCheck]:
    """
    Check the database file, the ledger's guard objects and stock conservation.

    The ``ledger_balance`` check lists parts whose ``current_stock`` differs
    from the sum of their movements' signed deltas.
    """
    db_path = db_path or get_settings().storage.db_path
    checks: list[SchemaCheck] = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (result,) = await cursor.fetchone()
        checks.append(SchemaCheck("integrity", result == "ok", {"result": result}))

        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        checks.append(SchemaCheck("foreign_keys", not violations, {"violations": len(violations)}))

        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        present = set(await cursor.fetchall())
        for check_name, kind, names in LEDGER_OBJECTS:
            missing = [n for n in names if (kind, n) not in present]
            checks.append(SchemaCheck(check_name, not missing, {"missing": missing}))

        if ("table", "stock_movements") in present and ("table", "parts") in present:
            cursor = await conn.execute(
                """
                SELECT p.id, p.part_number, p.current_stock, COALESCE(SUM(m.signed_delta), 0)
                FROM parts p LEFT JOIN stock_movements m ON m.part_id = p.id
                GROUP BY p.id
                HAVING p.current_stock != COALESCE(SUM(m.signed_delta), 0)
                """
            )
            drift = [
                {"part_id": pid, "part_number": number, "current_stock": stock, "ledger_sum": total}
                for pid, number, stock, total in await cursor.fetchall()
            ]
            checks.append(SchemaCheck("ledger_balance", not drift, {"drifted_parts": drift}))

    return checks
