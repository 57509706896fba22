"""
synapse_learning.api.routers.topics

Topic catalogue endpoints (anonymous or authenticated).
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.api.deps import db_session
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_optional_principal
from synapse_learning.auth.models import Principal
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.errors import NotFound
from synapse_learning.schemas import TopicOut

router = APIRouter(prefix="/api/topics", tags=["topics"])


@router.get("")
async def list_topics(
    limit: int = Query(default=50, ge=1, le=200),
    _: Principal | None = Depends(get_optional_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    topics = await TopicRepo(session).list_active(limit=limit)
    return ok([TopicOut.model_validate(t).dump() for t in topics])


@router.get("/{topic_id}")
async def get_topic(
    topic_id: uuid.UUID,
    _: Principal | None = Depends(get_optional_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    topic = await TopicRepo(session).get(topic_id)
    if topic is None or not topic.is_active:
        raise NotFound("Topic not found")
    return ok(TopicOut.model_validate(topic).dump())
