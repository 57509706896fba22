"""
synapse_learning.services.progress_service

Learning activity service.

Responsibilities:
- Record a learning session and fold it into the learner's per-topic progress.
- Keep learning-path completion in sync when a session belongs to a path.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.base import utcnow
from synapse_learning.db.models import (
    CompletionStatus,
    LearningPath,
    PathStatus,
    ProgressStatus,
    SessionType,
    UserProgress,
)
from synapse_learning.db.repositories.progress import ProgressRepo
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.errors import NotFound
from synapse_learning.schemas import ProgressOut, SessionOut
from synapse_learning.services.analytics import COMPLETED_STATES

MASTERY_THRESHOLD = 0.9
_PRACTICE_TYPES = frozenset({SessionType.practice, SessionType.scenario})


def _update_streak(progress: UserProgress, now: datetime) -> None:
    last = progress.last_studied_at
    if last is None:
        progress.study_streak = 1
        return
    days = (now.date() - last.date()).days
    if days == 1:
        progress.study_streak += 1
    elif days > 1:
        progress.study_streak = 1


class ProgressService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._progress = ProgressRepo(session)
        self._topics = TopicRepo(session)

    async def record_session(
        self,
        *,
        user_id: uuid.UUID,
        topic_id: uuid.UUID,
        session_type: SessionType,
        duration_minutes: int | None = None,
        confidence_before: int | None = None,
        confidence_after: int | None = None,
        completion_status: CompletionStatus = CompletionStatus.partial,
        learning_path_id: uuid.UUID | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        if await self._topics.get(topic_id) is None:
            raise NotFound("Topic not found")
        path = None
        if learning_path_id is not None:
            path = await self._session.get(LearningPath, learning_path_id)
            if path is None or path.user_id != user_id:
                raise NotFound("Learning path not found")

        now = now or utcnow()
        minutes = duration_minutes or 0
        completed = completion_status == CompletionStatus.completed

        session_row = await self._progress.add_session(
            user_id=user_id,
            topic_id=topic_id,
            learning_path_id=learning_path_id,
            session_type=session_type,
            start_time=now - timedelta(minutes=minutes),
            end_time=now,
            duration_minutes=duration_minutes,
            confidence_before=confidence_before,
            confidence_after=confidence_after,
            completion_status=completion_status,
            notes=notes,
        )

        progress = await self._progress.get_or_create(user_id=user_id, topic_id=topic_id)
        _update_streak(progress, now)
        progress.time_spent_minutes += minutes
        progress.review_count += 1
        progress.first_studied_at = progress.first_studied_at or session_row.start_time
        progress.last_studied_at = now
        if confidence_after is not None:
            progress.confidence_level = confidence_after
            progress.mastery_score = max(progress.mastery_score, confidence_after / 10)
        if session_type in _PRACTICE_TYPES:
            progress.practice_attempts += 1
            if completed:
                progress.successful_practices += 1

        if completed:
            if progress.status not in COMPLETED_STATES:
                progress.completed_at = now
            progress.status = (
                ProgressStatus.mastered
                if progress.mastery_score >= MASTERY_THRESHOLD
                else ProgressStatus.completed
            )
        elif progress.status == ProgressStatus.not_started:
            progress.status = ProgressStatus.in_progress

        if path is not None and completed:
            self._complete_path_topic(path, topic_id, minutes, now)

        await self._session.commit()
        return {
            "session": SessionOut.model_validate(session_row).dump(),
            "progress": ProgressOut.model_validate(progress).dump(),
        }

    def _complete_path_topic(
        self, path: LearningPath, topic_id: uuid.UUID, minutes: int, now: datetime
    ) -> None:
        for row in path.topics:
            if row.topic_id == topic_id and not row.is_completed:
                row.is_completed = True
                row.completed_at = now
                row.actual_time_minutes = (row.actual_time_minutes or 0) + minutes
        if path.topics:
            done = sum(1 for row in path.topics if row.is_completed)
            path.progress = done / len(path.topics)
            if done == len(path.topics):
                path.status = PathStatus.completed
                path.completed_at = now

    async def list_progress(self, user_id: uuid.UUID) -> list[dict[str, Any]]:
        rows = await self._progress.list_progress(user_id)
        return [ProgressOut.model_validate(p).dump() for p in rows]
