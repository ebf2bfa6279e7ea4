"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from partstock.config.settings import LedgerSettings
from partstock.core.entities.part import Part, StockLocation
from partstock.infrastructure.storage.sqlite import (
    SQLiteMovementLedger,
    SQLitePartStore,
    SQLiteReorderAlertStore,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_partstock.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 4
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def ledger_db(temp_db_path: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Migrated temp database wired into the global connection pool."""
    import partstock.infrastructure.storage.sqlite.connection as conn_module
    from partstock.infrastructure.storage.sqlite.migrations import initialize_database

    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert results and all(r.success for r in results)

    conn_module._pool = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await conn_module.close_pool()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    """Ledger settings with fast retries."""
    return LedgerSettings(
        max_retries=10,
        retry_delay=0.001,
        retry_max_delay=0.02,
        operation_timeout=10.0,
    )


@pytest.fixture
def part_store() -> SQLitePartStore:
    return SQLitePartStore()


@pytest.fixture
def movement_ledger() -> SQLiteMovementLedger:
    return SQLiteMovementLedger()


@pytest.fixture
def alert_store() -> SQLiteReorderAlertStore:
    return SQLiteReorderAlertStore()


@pytest.fixture
def sample_part() -> Part:
    """An active part comfortably above its reorder level."""
    return Part(
        part_number="BRK-PAD-001",
        name="Front brake pads",
        category="Brakes",
        manufacturer="Bosch",
        current_stock=10,
        min_stock_level=5,
        max_stock_level=50,
        unit_price=12.5,
        currency="USD",
        location=StockLocation(warehouse="Main Warehouse", section="B", shelf="2", bin="4"),
        created_by="tester",
        updated_by="tester",
    )
