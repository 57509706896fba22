"""
synapse_learning.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Offer an optional variant for endpoints that also serve anonymous callers.
- Bind the authenticated user id into the request logging context.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from synapse_learning.api.deps import settings_dep
from synapse_learning.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from synapse_learning.auth.models import Principal
from synapse_learning.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def _decode(token: str, settings: Settings) -> Principal:
    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=token)
        subject = str(payload["sub"])
        uuid.UUID(subject)
    except (JwtValidationError, KeyError, ValueError) as e:
        raise HTTPException(
            status_code=HTTP_403_FORBIDDEN, detail="Invalid or expired token"
        ) from e

    # Later events in this request carry the caller.
    structlog.contextvars.bind_contextvars(user_id=subject)
    return Principal(
        subject=subject,
        email=str(payload.get("email", "")),
        role=str(payload.get("role", "")),
    )


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Access token is required")
    return _decode(creds.credentials, settings)


async def get_optional_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal | None:
    # Anonymous callers pass through; a present but bad token is still rejected.
    if creds is None or not creds.credentials:
        return None
    return _decode(creds.credentials, settings)


# --- Module Notes -----------------------------------------------------------
# Missing credentials are 401; credentials that fail validation are 403.
# The dependencies are async so the `user_id` binding lands in the request task's
# context rather than a threadpool copy.
