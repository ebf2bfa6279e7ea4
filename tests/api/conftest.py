"""Fixtures for API tests: the real app over a migrated temp database."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from partstock.api.dependencies import ACTOR_HEADER
from partstock.api.main import app


@pytest.fixture
async def client(ledger_db) -> AsyncGenerator[AsyncClient, None]:
    """Async client; requests carry an actor header unless they override it."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={ACTOR_HEADER: "clerk-1"},
    ) as ac:
        yield ac


@pytest.fixture
async def brake_pads(client: AsyncClient) -> dict:
    """A registered part with 10 on hand, reorder level 5."""
    response = await client.post(
        "/api/inventory/parts",
        json={
            "part_number": "brk-pad-001",
            "name": "Front brake pads",
            "category": "Brakes",
            "current_stock": 10,
            "min_stock_level": 5,
            "max_stock_level": 50,
            "unit_price": 12.5,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()
