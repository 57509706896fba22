"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and the DB readiness check works in test mode.
- Ensure unknown routes and stray exceptions still use the JSON error envelope.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["service"] == "synapse-learning"

    r = await client.get("/api/ready")
    assert r.status_code == 200
    assert r.json()["success"] is True

    assert "x-request-id" in r.headers


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_stray_value_error_is_a_500(app: FastAPI) -> None:
    async def broken() -> None:
        int("not a number")

    app.add_api_route("/api/broken", broken)
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        r = await c.get("/api/broken")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Internal server error"}
