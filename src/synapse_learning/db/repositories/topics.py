"""
synapse_learning.db.repositories.topics

Repository for `Topic` entities.

Responsibilities:
- Persist curated topics with unique slugs.
- List active topics (newest first) and resolve topic ids.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.models import Experience, SourceType, Topic, TopicCategory

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    slug = _NON_SLUG.sub("-", title.lower()).strip("-")
    return slug or "topic"


class TopicRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def unique_slug(self, title: str) -> str:
        base = slugify(title)
        stmt = select(Topic.slug).where(Topic.slug.like(f"{base}%"))
        taken = set((await self._session.execute(stmt)).scalars().all())
        if base not in taken:
            return base
        n = 2
        while f"{base}-{n}" in taken:
            n += 1
        return f"{base}-{n}"

    async def create(
        self,
        *,
        title: str,
        category: TopicCategory,
        definition: str,
        difficulty: Experience = Experience.beginner,
        explanation: str = "",
        why_it_matters: str = "",
        real_world_example: str = "",
        tags: list[str] | None = None,
        prerequisites: list[str] | None = None,
        source_type: SourceType = SourceType.manual,
        source_url: str | None = None,
        meta: dict[str, Any] | None = None,
        estimated_time_minutes: int = 15,
    ) -> Topic:
        topic = Topic(
            title=title,
            slug=await self.unique_slug(title),
            category=category,
            difficulty=difficulty,
            estimated_time_minutes=estimated_time_minutes,
            definition=definition,
            explanation=explanation,
            why_it_matters=why_it_matters,
            real_world_example=real_world_example,
            tags=tags or [],
            prerequisites=prerequisites or [],
            source_type=source_type,
            source_url=source_url,
            meta=meta or {},
            is_active=True,
            version=1,
        )
        self._session.add(topic)
        await self._session.flush()
        return topic

    async def get(self, topic_id: uuid.UUID) -> Topic | None:
        return await self._session.get(Topic, topic_id)

    async def list_active(self, *, limit: int = 50) -> list[Topic]:
        stmt = (
            select(Topic)
            .where(Topic.is_active.is_(True))
            .order_by(desc(Topic.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def existing_ids(self, topic_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        ids = list(topic_ids)
        if not ids:
            return set()
        stmt = select(Topic.id).where(Topic.id.in_(ids))
        return set((await self._session.execute(stmt)).scalars().all())
