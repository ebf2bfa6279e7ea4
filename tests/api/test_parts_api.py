"""API tests for part endpoints and reports."""

from httpx import AsyncClient


class TestPartsAPI:
    async def test_create_part(self, client: AsyncClient, brake_pads):
        assert brake_pads["part_number"] == "BRK-PAD-001"
        assert brake_pads["current_stock"] == 10
        assert brake_pads["stock_status"] == "IN_STOCK"
        assert brake_pads["created_by"] == "clerk-1"
        assert brake_pads["location"]["warehouse"] == "Main Warehouse"

        history = await client.get(f"/api/inventory/parts/{brake_pads['id']}/transactions")
        opening = history.json()["transactions"][0]
        assert opening["reference"] == "OPENING_BALANCE"
        assert opening["quantity"] == 10

    async def test_duplicate_part_number_is_422(self, client: AsyncClient, brake_pads):
        response = await client.post(
            "/api/inventory/parts", json={"part_number": "BRK-PAD-001", "name": "Again"}
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "DUPLICATE_PART_NUMBER"

    async def test_inverted_thresholds_are_422(self, client: AsyncClient):
        response = await client.post(
            "/api/inventory/parts",
            json={"part_number": "OIL-FLT-9", "name": "Oil filter", "min_stock_level": 20, "max_stock_level": 10},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_STOCK_POLICY"

    async def test_negative_opening_stock_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/inventory/parts", json={"part_number": "OIL-FLT-9", "name": "Oil filter", "current_stock": -1}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_oversized_opening_stock_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/inventory/parts", json={"part_number": "OIL-FLT-9", "name": "Oil filter", "current_stock": 10**19}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_get_unknown_part_is_404(self, client: AsyncClient):
        response = await client.get("/api/inventory/parts/4242")
        assert response.status_code == 404
        assert response.json()["hint"]

    async def test_list_filters_by_status(self, client: AsyncClient, brake_pads):
        await client.post(
            "/api/inventory/parts",
            json={"part_number": "SPK-PLG-4", "name": "Spark plug", "current_stock": 2, "min_stock_level": 5},
        )

        low = await client.get("/api/inventory/parts", params={"stock_status": "low"})
        everything = await client.get("/api/inventory/parts")

        assert [p["part_number"] for p in low.json()["parts"]] == ["SPK-PLG-4"]
        assert everything.json()["total"] == 2

    async def test_unknown_status_filter_is_400(self, client: AsyncClient):
        response = await client.get("/api/inventory/parts", params={"stock_status": "plenty"})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "stock_status"

    async def test_update_raises_threshold(self, client: AsyncClient, brake_pads):
        response = await client.patch(
            f"/api/inventory/parts/{brake_pads['id']}", json={"min_stock_level": 12, "name": "Pads (front)"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Pads (front)"
        assert body["is_reorder_required"] is True
        assert body["current_stock"] == 10

        alerts = await client.get("/api/inventory/alerts", params={"part_id": brake_pads["id"]})
        assert alerts.json()["total"] == 1

    async def test_deactivate(self, client: AsyncClient, brake_pads):
        response = await client.delete(f"/api/inventory/parts/{brake_pads['id']}")

        assert response.status_code == 200
        assert response.json()["is_active"] is False

        listed = await client.get("/api/inventory/parts")
        assert listed.json()["total"] == 0
        rejected = await client.post(
            "/api/inventory/stock/adjust",
            json={"part_id": brake_pads["id"], "transaction_type": "IN", "quantity": 1},
        )
        assert rejected.status_code == 422
        assert rejected.json()["error_code"] == "PART_INACTIVE"


class TestReportsAPI:
    async def test_low_stock_and_summary(self, client: AsyncClient, brake_pads):
        await client.post(
            "/api/inventory/stock/adjust",
            json={"part_id": brake_pads["id"], "transaction_type": "OUT", "quantity": 10},
        )

        low = await client.get("/api/inventory/reports/low-stock")
        summary = await client.get("/api/inventory/reports/summary")

        assert low.json()["total"] == 1
        assert low.json()["parts"][0]["stock_status"] == "OUT_OF_STOCK"
        body = summary.json()
        assert body["total_parts"] == 1
        assert body["out_of_stock_count"] == 1
        assert body["open_alert_count"] == 1

    async def test_category_analysis_and_value(self, client: AsyncClient, brake_pads):
        await client.post(
            "/api/inventory/parts",
            json={"part_number": "OIL-FLT-9", "name": "Oil filter", "category": "Filters",
                  "current_stock": 4, "unit_price": 6.0},
        )

        analysis = await client.get("/api/inventory/reports/category-analysis")
        value = await client.get("/api/inventory/reports/inventory-value", params={"top": 1})

        assert analysis.status_code == 200
        body = analysis.json()
        assert body["total_categories"] == 2
        assert [c["category"] for c in body["categories"]] == ["Brakes", "Filters"]
        assert body["categories"][1]["low_stock_count"] == 1
        report = value.json()
        assert report["summary"]["total_value"] == 149.0
        assert [p["part_number"] for p in report["top_value_parts"]] == ["BRK-PAD-001"]
        assert report["category_values"][0]["total_value"] == 125.0

    async def test_dashboard(self, client: AsyncClient, brake_pads):
        for qty in (1, 1, 1, 1, 3):
            await client.post(
                "/api/inventory/stock/adjust",
                json={"part_id": brake_pads["id"], "transaction_type": "OUT", "quantity": qty},
            )

        response = await client.get("/api/inventory/dashboard")

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["total_parts"] == 1
        assert body["summary"]["low_stock_count"] == 1
        assert body["summary"]["open_alert_count"] == 1
        recent = body["recent_transactions"]
        assert len(recent) == 5
        assert recent[0]["quantity"] == 3
        assert body["stock_by_category"][0]["total_stock"] == 3
