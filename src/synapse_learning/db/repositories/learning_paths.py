"""
synapse_learning.db.repositories.learning_paths

Repository for `LearningPath` entities and their ordered topic rows.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from synapse_learning.db.base import utcnow
from synapse_learning.db.models import (
    Experience,
    LearningPath,
    LearningPathTopic,
    PathStatus,
    PathType,
)


class LearningPathRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        title: str,
        description: str | None,
        type: PathType,
        difficulty: Experience,
        estimated_days: int,
        target_role: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> LearningPath:
        path = LearningPath(
            user_id=user_id,
            title=title,
            description=description,
            type=type,
            difficulty=difficulty,
            estimated_days=estimated_days,
            target_role=target_role,
            status=PathStatus.active,
            progress=0.0,
            meta=meta or {},
            started_at=utcnow(),
        )
        self._session.add(path)
        await self._session.flush()
        return path

    async def add_topic(
        self,
        *,
        learning_path_id: uuid.UUID,
        topic_id: uuid.UUID,
        sequence_order: int,
        is_required: bool = True,
        target_mastery_score: float = 0.8,
    ) -> LearningPathTopic:
        row = LearningPathTopic(
            learning_path_id=learning_path_id,
            topic_id=topic_id,
            sequence_order=sequence_order,
            is_required=is_required,
            is_completed=False,
            target_mastery_score=target_mastery_score,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, path_id: uuid.UUID) -> LearningPath | None:
        # Refresh the topic rows even if the path is already in the identity map.
        stmt = (
            select(LearningPath)
            .where(LearningPath.id == path_id)
            .options(selectinload(LearningPath.topics))
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[LearningPath]:
        stmt = (
            select(LearningPath)
            .where(LearningPath.user_id == user_id)
            .order_by(desc(LearningPath.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())
