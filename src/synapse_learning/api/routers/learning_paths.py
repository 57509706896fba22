"""
synapse_learning.api.routers.learning_paths

Read endpoints for the caller's learning paths.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.api.deps import db_session
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_principal
from synapse_learning.auth.models import Principal
from synapse_learning.db.repositories.learning_paths import LearningPathRepo
from synapse_learning.schemas import LearningPathDetailOut

router = APIRouter(prefix="/api/learning-paths", tags=["learning-paths"])


@router.get("")
async def list_learning_paths(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    paths = await LearningPathRepo(session).list_for_user(principal.user_id)
    return ok([LearningPathDetailOut.model_validate(p).dump() for p in paths])
