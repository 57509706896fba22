"""
synapse_learning.db.session

Async SQLAlchemy engine and session factory.

Responsibilities:
- Build the async engine from settings, with SQLite lock waits for the default
  file database shared by the API and task workers.
- Build the sessionmaker used by request dependencies and background actors.
- Give workers a session scope that rolls back whatever a failed task left pending.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from synapse_learning.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    connect_args: dict[str, Any] = {}
    if make_url(settings.database_url).get_backend_name() == "sqlite":
        # Seconds a writer waits on a locked database file before failing.
        connect_args["timeout"] = settings.db_busy_timeout_seconds
    return create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services commit explicitly and keep returning the committed rows.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
