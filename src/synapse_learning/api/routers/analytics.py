"""
synapse_learning.api.routers.analytics

Learner analytics endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.api.deps import db_session
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_principal
from synapse_learning.auth.models import Principal
from synapse_learning.services.analytics import LearningAnalyticsEngine

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _engine(session: AsyncSession = Depends(db_session)) -> LearningAnalyticsEngine:
    return LearningAnalyticsEngine(session=session)


@router.get("/overview")
async def overview(
    principal: Principal = Depends(get_principal),
    engine: LearningAnalyticsEngine = Depends(_engine),
) -> dict[str, Any]:
    return ok(await engine.calculate_user_analytics(principal.user_id))


@router.get("/insights")
async def insights(
    principal: Principal = Depends(get_principal),
    engine: LearningAnalyticsEngine = Depends(_engine),
) -> dict[str, Any]:
    return ok(await engine.calculate_learning_insights(principal.user_id))


@router.get("/comparison")
async def comparison(
    principal: Principal = Depends(get_principal),
    engine: LearningAnalyticsEngine = Depends(_engine),
) -> dict[str, Any]:
    return ok(await engine.get_comparative_analytics(principal.user_id))
