"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts, creates its schema and answers the probes in test mode.
"""

from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_health_endpoints(client) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"

    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.json()["backend"] == "Car Parts"


@pytest.mark.asyncio
async def test_request_id_propagated(client) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "req-123"})
    assert r.headers["x-request-id"] == "req-123"

    r = await client.get("/healthz")
    assert r.headers["x-request-id"]
