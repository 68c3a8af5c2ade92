"""Tests for app-level endpoints and middleware."""

import pytest


@pytest.mark.asyncio
class TestHealth:
    async def test_healthy_store(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"document_store": True}

    async def test_unreachable_store_is_503(self, client, memory_store):
        memory_store.ping_error = ConnectionError("store down")

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_generated_when_missing(client):
    response = await client.get("/health")
    assert response.headers["X-Request-ID"]
