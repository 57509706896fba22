"""
synapse_learning.api.routers.auth

Account endpoints: register, login, current user, token refresh, profile changes.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from synapse_learning.api.deps import db_session, settings_dep
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_principal
from synapse_learning.auth.models import Principal
from synapse_learning.auth.passwords import MAX_PASSWORD_BYTES, password_too_long
from synapse_learning.db.models import Experience, UserRole
from synapse_learning.services.auth_service import AuthService
from synapse_learning.settings import Settings

router = APIRouter(prefix="/api/auth", tags=["auth"])

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _check_password_bytes(v: str) -> str:
    if password_too_long(v):
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return v


class RegisterRequest(BaseModel):
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.other
    experience: Experience = Experience.beginner
    learning_goals: str | None = None
    industry: str | None = Field(default=None, max_length=100)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, v: str) -> str:
        return _check_password_bytes(v)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UpdateUserRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None
    experience: Experience | None = None
    learning_goals: str | None = None
    industry: str | None = Field(default=None, max_length=100)
    preferences: dict[str, Any] | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def _fits_bcrypt(cls, v: str) -> str:
        return _check_password_bytes(v)


def _service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AuthService:
    return AuthService(session=session, settings=settings)


@router.post("/register", status_code=HTTP_201_CREATED)
async def register(body: RegisterRequest, svc: AuthService = Depends(_service)) -> dict[str, Any]:
    return ok(await svc.register(**body.model_dump()))


@router.post("/login")
async def login(body: LoginRequest, svc: AuthService = Depends(_service)) -> dict[str, Any]:
    return ok(await svc.login(email=body.email, password=body.password))


@router.get("/me")
async def me(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(_service),
) -> dict[str, Any]:
    return ok({"user": await svc.get_user(principal.user_id)})


@router.post("/refresh")
async def refresh(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(_service),
) -> dict[str, Any]:
    return ok(await svc.refresh_token(principal.user_id))


@router.patch("/me")
async def update_me(
    body: UpdateUserRequest,
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(_service),
) -> dict[str, Any]:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    return ok({"user": await svc.update_user(principal.user_id, changes)})


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(_service),
) -> dict[str, Any]:
    await svc.change_password(
        principal.user_id,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    return ok({"message": "Password updated"})


@router.delete("/me")
async def deactivate_me(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(_service),
) -> dict[str, Any]:
    await svc.deactivate_user(principal.user_id)
    return ok({"message": "Account deactivated"})
