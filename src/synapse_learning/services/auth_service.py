"""
synapse_learning.services.auth_service

Account lifecycle service.

Responsibilities:
- Register and authenticate learners (bcrypt hashes, JWT access tokens).
- Refresh tokens, update profiles, change passwords and deactivate accounts.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.auth.jwt import JwtConfig, issue_token
from synapse_learning.auth.passwords import PasswordHasher
from synapse_learning.db.models import Experience, User, UserRole
from synapse_learning.db.repositories.users import UserRepo
from synapse_learning.errors import BadRequest, Conflict, NotFound, Unauthorized
from synapse_learning.observability.logging import get_logger
from synapse_learning.schemas import UserOut
from synapse_learning.settings import Settings

log = get_logger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"first_name", "last_name", "role", "experience", "learning_goals", "industry", "preferences"}
)


class AuthService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._jwt = JwtConfig.from_settings(settings)
        self._hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        self._users = UserRepo(session)

    def _token_for(self, user: User) -> str:
        return issue_token(
            cfg=self._jwt, subject=str(user.id), email=user.email, role=user.role.value
        )

    def _auth_payload(self, user: User) -> dict[str, Any]:
        return {"user": UserOut.model_validate(user).dump(), "token": self._token_for(user)}

    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.other,
        experience: Experience = Experience.beginner,
        learning_goals: str | None = None,
        industry: str | None = None,
    ) -> dict[str, Any]:
        if await self._users.get_by_email(email) is not None:
            raise Conflict("User with this email already exists")

        try:
            user = await self._users.create(
                email=email,
                password_hash=self._hasher.hash(password),
                first_name=first_name,
                last_name=last_name,
                role=role,
                experience=experience,
                learning_goals=learning_goals,
                industry=industry,
            )
            await self._session.commit()
        except IntegrityError as e:
            # Concurrent registration with the same email.
            await self._session.rollback()
            raise Conflict("User with this email already exists") from e

        log.info("user_registered", user_id=str(user.id))
        return self._auth_payload(user)

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        user = await self._users.get_by_email(email)
        if user is None or not user.is_active:
            raise Unauthorized("Invalid email or password")
        if not self._hasher.verify(password, user.password_hash):
            raise Unauthorized("Invalid email or password")

        await self._users.touch(user)
        await self._session.commit()
        log.info("user_logged_in", user_id=str(user.id))
        return self._auth_payload(user)

    async def get_user(self, user_id: uuid.UUID) -> dict[str, Any]:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return UserOut.model_validate(user).dump()

    async def refresh_token(self, user_id: uuid.UUID) -> dict[str, Any]:
        user = await self._users.get(user_id)
        if user is None or not user.is_active:
            raise Unauthorized("User not found or inactive")
        return {"token": self._token_for(user)}

    async def update_user(self, user_id: uuid.UUID, changes: dict[str, Any]) -> dict[str, Any]:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise BadRequest(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        await self._users.update(user, changes)
        await self._session.commit()
        return UserOut.model_validate(user).dump()

    async def change_password(
        self, user_id: uuid.UUID, *, current_password: str, new_password: str
    ) -> None:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        if not self._hasher.verify(current_password, user.password_hash):
            raise Unauthorized("Current password is incorrect")

        user.password_hash = self._hasher.hash(new_password)
        await self._session.commit()

    async def deactivate_user(self, user_id: uuid.UUID) -> None:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        user.is_active = False
        await self._session.commit()
        log.info("user_deactivated", user_id=str(user_id))
