"""
synapse_learning.api.routers.health

Health and readiness endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning import __version__
from synapse_learning.api.deps import db_session, settings_dep
from synapse_learning.api.errors import ok
from synapse_learning.settings import Settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(settings_dep)) -> dict[str, Any]:
    return ok({"status": "ok", "service": settings.service_name, "version": __version__})


@router.get("/ready")
async def ready(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    await session.execute(text("SELECT 1"))
    return ok({"status": "ready"})
