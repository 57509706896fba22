"""
synapse_learning.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the LLM client.
- Encapsulate app.state access patterns (settings/sessionmaker/http client).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from synapse_learning.llm.client import LLMClient
from synapse_learning.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Set by `create_app`; tests pass their own Settings instance there.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def llm_http(request: Request) -> httpx.AsyncClient:
    return request.app.state.llm_http  # type: ignore[attr-defined]


def llm_client(
    settings: Settings = Depends(settings_dep),
    http: httpx.AsyncClient = Depends(llm_http),
) -> LLMClient:
    return LLMClient(settings=settings, http=http)
