"""
synapse_learning.tasks.agent_tasks

Background agent tasks.

Responsibilities:
- Validate and enqueue agent tasks on the actor for their priority label.
- Run a queued task through the orchestrator with its own DB engine and HTTP client.

Workers are started with `dramatiq synapse_learning.tasks.agent_tasks`.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import AsyncExitStack
from typing import Any

import dramatiq
import httpx
from pydantic_core import to_jsonable_python

from synapse_learning.db.init_db import init_db
from synapse_learning.db.models import AgentType
from synapse_learning.db.session import create_engine, create_sessionmaker, session_scope
from synapse_learning.errors import BadRequest
from synapse_learning.llm.client import LLMClient
from synapse_learning.observability.logging import get_logger
from synapse_learning.services.orchestrator import AgentOrchestrator
from synapse_learning.settings import Settings, get_settings
from synapse_learning.tasks.broker import AGENT_TASKS_QUEUE, setup_broker

setup_broker()

log = get_logger(__name__)

PRIORITIES: dict[str, int] = {"LOW": 1, "MEDIUM": 5, "HIGH": 10, "URGENT": 20}


async def run_agent_task(
    *,
    settings: Settings,
    agent_type: AgentType,
    user_id: uuid.UUID,
    task_type: str,
    data: dict[str, Any],
    http: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    engine = create_engine(settings)
    try:
        if settings.env in ("dev", "test"):
            await init_db(engine)
        async with AsyncExitStack() as stack:
            if http is None:
                http = await stack.enter_async_context(httpx.AsyncClient())
            session = await stack.enter_async_context(session_scope(create_sessionmaker(engine)))
            orchestrator = AgentOrchestrator(
                session=session, settings=settings, llm=LLMClient(settings=settings, http=http)
            )
            return await orchestrator.run_task(
                user_id=user_id, agent_type=agent_type, task_type=task_type, data=data
            )
    finally:
        await engine.dispose()


def process_agent_task(
    agent_type: str,
    user_id: str,
    task_type: str,
    data: dict[str, Any],
    priority: str = "MEDIUM",
) -> dict[str, Any]:
    log.info("agent_task_started", agent=agent_type, task_type=task_type, priority=priority)
    return asyncio.run(
        run_agent_task(
            settings=get_settings(),
            agent_type=AgentType(agent_type),
            user_id=uuid.UUID(user_id),
            task_type=task_type,
            data=data,
        )
    )


def actor_priority(label: str) -> int:
    # Workers run prefetched messages with lower actor priority first.
    return max(PRIORITIES.values()) - PRIORITIES[label]


# Dramatiq priorities are per actor, so each label gets its own actor.
AGENT_TASK_ACTORS: dict[str, dramatiq.Actor] = {
    label: dramatiq.actor(
        process_agent_task,
        actor_name=f"process_agent_task_{label.lower()}",
        queue_name=AGENT_TASKS_QUEUE,
        priority=actor_priority(label),
        max_retries=get_settings().task_max_retries,
        min_backoff=get_settings().task_backoff_ms,
    )
    for label in PRIORITIES
}


def enqueue_agent_task(
    *,
    agent_type: str,
    user_id: uuid.UUID,
    task_type: str,
    data: dict[str, Any],
    priority: str = "MEDIUM",
) -> dramatiq.Message:
    try:
        AgentType(agent_type)
    except ValueError as e:
        raise BadRequest(f"Unknown agent type: {agent_type}") from e
    if priority not in PRIORITIES:
        raise BadRequest(f"Unknown priority: {priority}")

    message = AGENT_TASK_ACTORS[priority].send(
        agent_type, str(user_id), task_type, to_jsonable_python(data), priority
    )
    log.info(
        "agent_task_enqueued",
        message_id=message.message_id,
        agent=agent_type,
        task_type=task_type,
        priority=priority,
    )
    return message
