"""
synapse_learning.db.repositories.agent_sessions

Repository for `AgentSession` telemetry rows.

Responsibilities:
- Open a session row when an agent starts work.
- Close it with status, timing, token/cost counters and result or error.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.base import utcnow
from synapse_learning.db.models import AgentSession, AgentSessionStatus, AgentType


class AgentSessionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def open(
        self,
        *,
        user_id: uuid.UUID,
        agent_type: AgentType,
        context: dict[str, Any],
        session_id: str | None = None,
    ) -> AgentSession:
        row = AgentSession(
            user_id=user_id,
            agent_type=agent_type,
            session_id=session_id or str(uuid.uuid4()),
            context=context,
            messages=[],
            status=AgentSessionStatus.active,
            start_time=utcnow(),
            tokens_used=0,
            cost=0.0,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def close(
        self,
        row: AgentSession,
        *,
        status: AgentSessionStatus,
        execution_time_ms: int,
        tokens_used: int,
        cost: float,
        messages: list[dict[str, Any]],
        result_data: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        row.status = status
        row.end_time = utcnow()
        row.execution_time_ms = execution_time_ms
        row.tokens_used = tokens_used
        row.cost = round(cost, 6)
        row.messages = messages
        row.result_data = result_data
        row.error_message = error_message
        await self._session.flush()

    async def list_finished(self) -> list[AgentSession]:
        stmt = select(AgentSession).where(AgentSession.status != AgentSessionStatus.active)
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, row_id: uuid.UUID) -> AgentSession | None:
        return await self._session.get(AgentSession, row_id)
