"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(anon_client):
    """Health endpoint should return server status, version and database state."""
    resp = await anon_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data
