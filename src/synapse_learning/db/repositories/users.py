"""
synapse_learning.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Create, fetch and update learner accounts.
- Provide role-cohort queries for comparative analytics.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.base import utcnow
from synapse_learning.db.models import Experience, User, UserRole, default_preferences


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.other,
        experience: Experience = Experience.beginner,
        learning_goals: str | None = None,
        industry: str | None = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            experience=experience,
            learning_goals=learning_goals,
            industry=industry,
            preferences=default_preferences(),
            last_active=utcnow(),
            is_active=True,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def touch(self, user: User) -> None:
        user.last_active = utcnow()

    async def update(self, user: User, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self._session.flush()
        return user

    async def count_active_by_role(self, role: UserRole) -> int:
        stmt = select(func.count(User.id)).where(User.role == role, User.is_active.is_(True))
        return int((await self._session.execute(stmt)).scalar_one())
