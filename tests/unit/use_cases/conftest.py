"""Fixtures for use case unit tests: in-memory fakes for the stores."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from partstock.core.entities.part import Part


@pytest.fixture
def transaction_factory():
    """Stand-in for get_transaction(immediate=True)."""

    @asynccontextmanager
    async def factory():
        yield "tx"

    return factory


@pytest.fixture
def stored_part() -> Part:
    return Part(
        id=7,
        part_number="BRK-PAD-001",
        name="Front brake pads",
        current_stock=10,
        min_stock_level=5,
        max_stock_level=50,
        unit_price=12.5,
        version=3,
    )


@pytest.fixture
def mock_part_store(stored_part):
    store = AsyncMock()
    store.get_part.return_value = stored_part
    store.get_part_by_number.return_value = None

    async def write_stock(part, expected_version, conn=None):
        return part.model_copy(update={"version": expected_version + 1})

    async def create_part(part, conn=None):
        return part.model_copy(update={"id": 7})

    store.write_stock.side_effect = write_stock
    store.update_details.side_effect = write_stock
    store.create_part.side_effect = create_part
    return store


@pytest.fixture
def mock_ledger():
    ledger = AsyncMock()
    ledger.get_by_idempotency_key.return_value = None

    async def append(movement, conn=None):
        return movement.model_copy(update={"id": 100})

    ledger.append.side_effect = append
    return ledger


@pytest.fixture
def mock_alert_store():
    store = AsyncMock()
    store.get_open_alert.return_value = None
    store.get_latest_alert.return_value = None

    async def create_alert(alert, conn=None):
        return alert.model_copy(update={"id": 55})

    async def update_alert(alert, expected_status, conn=None):
        return alert

    store.create_alert.side_effect = create_alert
    store.update_alert.side_effect = update_alert
    return store
