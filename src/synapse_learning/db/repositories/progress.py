"""
synapse_learning.db.repositories.progress

Repository for learning activity: `LearningSession` rows and `UserProgress` state.

Responsibilities:
- Append learning sessions.
- Fetch-or-create the per-user, per-topic progress row.
- Load a user's full history for analytics.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.models import (
    CompletionStatus,
    LearningSession,
    ProgressStatus,
    SessionType,
    UserProgress,
)


class ProgressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_session(
        self,
        *,
        user_id: uuid.UUID,
        topic_id: uuid.UUID,
        session_type: SessionType,
        start_time: datetime,
        end_time: datetime | None,
        duration_minutes: int | None,
        confidence_before: int | None,
        confidence_after: int | None,
        completion_status: CompletionStatus,
        learning_path_id: uuid.UUID | None = None,
        notes: str | None = None,
    ) -> LearningSession:
        row = LearningSession(
            user_id=user_id,
            topic_id=topic_id,
            learning_path_id=learning_path_id,
            session_type=session_type,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration_minutes,
            confidence_before=confidence_before,
            confidence_after=confidence_after,
            completion_status=completion_status,
            interaction_data={},
            feedback={},
            notes=notes,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_or_create(self, *, user_id: uuid.UUID, topic_id: uuid.UUID) -> UserProgress:
        stmt = select(UserProgress).where(
            UserProgress.user_id == user_id, UserProgress.topic_id == topic_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is not None:
            return row
        row = UserProgress(
            user_id=user_id,
            topic_id=topic_id,
            status=ProgressStatus.not_started,
            confidence_level=1,
            mastery_score=0.0,
            time_spent_minutes=0,
            study_streak=0,
            review_count=0,
            learning_velocity=0.0,
            practice_attempts=0,
            successful_practices=0,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_progress(self, user_id: uuid.UUID) -> list[UserProgress]:
        stmt = (
            select(UserProgress)
            .where(UserProgress.user_id == user_id)
            .order_by(desc(UserProgress.updated_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_sessions(self, user_id: uuid.UUID) -> list[LearningSession]:
        stmt = (
            select(LearningSession)
            .where(LearningSession.user_id == user_id)
            .order_by(desc(LearningSession.start_time))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def completed_topic_ids(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = select(UserProgress.topic_id).where(
            UserProgress.user_id == user_id,
            UserProgress.status.in_([ProgressStatus.completed, ProgressStatus.mastered]),
        )
        return list((await self._session.execute(stmt)).scalars().all())
