"""
parts_market.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`) and the legacy `/api/health` shape.
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}


@router.get("/api/health")
async def api_health() -> dict[str, Any]:
    return {"ok": True, "backend": "Car Parts", "time": datetime.now(tz=UTC).isoformat()}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /healthz for liveness and /readyz for readiness gating.
