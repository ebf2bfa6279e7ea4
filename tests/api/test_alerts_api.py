"""API tests for reorder alert endpoints."""

import pytest
from httpx import AsyncClient


@pytest.fixture
async def open_alert(client: AsyncClient, brake_pads) -> dict:
    response = await client.post(
        "/api/inventory/stock/adjust",
        json={"part_id": brake_pads["id"], "transaction_type": "OUT", "quantity": 8},
    )
    return response.json()["alert"]


class TestAlertsAPI:
    async def test_list_active(self, client: AsyncClient, open_alert):
        response = await client.get("/api/inventory/alerts")

        assert response.status_code == 200
        alerts = response.json()["alerts"]
        assert [a["id"] for a in alerts] == [open_alert["id"]]
        assert alerts[0]["priority"] == "HIGH"
        assert alerts[0]["alert_type"] == "LOW_STOCK"

    async def test_acknowledge_then_dismiss(self, client: AsyncClient, open_alert):
        acked = await client.post(
            f"/api/inventory/alerts/{open_alert['id']}/acknowledge", json={"notes": "PO-5531 raised"}
        )
        assert acked.status_code == 200
        assert acked.json()["status"] == "ACKNOWLEDGED"
        assert acked.json()["acknowledged_by"] == "clerk-1"

        dismissed = await client.post(f"/api/inventory/alerts/{open_alert['id']}/dismiss")
        assert dismissed.status_code == 200
        assert dismissed.json()["status"] == "DISMISSED"

        active = await client.get("/api/inventory/alerts")
        assert active.json()["total"] == 0
        everything = await client.get("/api/inventory/alerts", params={"status": "all"})
        assert everything.json()["total"] == 1

    async def test_acknowledge_twice_is_422(self, client: AsyncClient, open_alert):
        await client.post(f"/api/inventory/alerts/{open_alert['id']}/acknowledge")
        response = await client.post(f"/api/inventory/alerts/{open_alert['id']}/acknowledge")

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_ALERT_TRANSITION"

    async def test_unknown_alert_is_404(self, client: AsyncClient):
        response = await client.post("/api/inventory/alerts/999/dismiss")
        assert response.status_code == 404
        assert response.json()["error_code"] == "ALERT_NOT_FOUND"

    async def test_bad_status_filter_is_400(self, client: AsyncClient):
        response = await client.get("/api/inventory/alerts", params={"status": "snoozed"})
        assert response.status_code == 400
