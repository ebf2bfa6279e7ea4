"""API tests for health endpoints and middleware headers."""

from httpx import AsyncClient

from partstock import __version__


async def test_health_reports_schema_version(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "available"
    assert body["schema_version"] == "001"
    assert body["version"] == __version__


async def test_root_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200


async def test_request_id_header(client: AsyncClient):
    first = await client.get("/api/health")
    second = await client.get("/api/health")

    assert len(first.headers["X-Request-ID"]) == 8
    assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]
    assert first.headers["X-Response-Time"].endswith("ms")
