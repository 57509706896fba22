"""
tests.test_tasks

Background agent tasks on the in-memory Dramatiq broker.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI

from conftest import FakeLLM
from synapse_learning.db.models import AgentType
from synapse_learning.errors import BadRequest
from synapse_learning.tasks.agent_tasks import (
    AGENT_TASK_ACTORS,
    PRIORITIES,
    enqueue_agent_task,
    run_agent_task,
)
from synapse_learning.tasks.broker import AGENT_TASKS_QUEUE, get_broker


@pytest.fixture
def broker() -> Iterator[Any]:
    broker = get_broker()
    broker.flush_all()
    yield broker
    broker.flush_all()


def test_enqueue_puts_message_on_agent_queue(broker: Any) -> None:
    user_id = uuid.uuid4()
    message = enqueue_agent_task(
        agent_type="CONTENT_CURATOR",
        user_id=user_id,
        task_type="EXTRACT_TOPICS",
        data={"content": "newsletter"},
        priority="HIGH",
    )
    assert message.queue_name == AGENT_TASKS_QUEUE
    assert message.args == (
        "CONTENT_CURATOR",
        str(user_id),
        "EXTRACT_TOPICS",
        {"content": "newsletter"},
        "HIGH",
    )
    assert message.actor_name == "process_agent_task_high"
    assert broker.get_actor(message.actor_name).priority == 10
    assert broker.queues[AGENT_TASKS_QUEUE].qsize() == 1


def test_urgent_tasks_outrank_low_ones_on_the_worker(broker: Any) -> None:
    priorities = {label: AGENT_TASK_ACTORS[label].priority for label in PRIORITIES}
    assert priorities == {"LOW": 19, "MEDIUM": 15, "HIGH": 10, "URGENT": 0}
    assert all(a.queue_name == AGENT_TASKS_QUEUE for a in AGENT_TASK_ACTORS.values())

    message = enqueue_agent_task(
        agent_type="RESEARCH_ASSISTANT",
        user_id=uuid.uuid4(),
        task_type="MARKET_RESEARCH",
        data={"market": "Retail"},
    )
    assert message.actor_name == "process_agent_task_medium"


def test_enqueue_rejects_unknown_agent_and_priority(broker: Any) -> None:
    with pytest.raises(BadRequest, match="Unknown agent type"):
        enqueue_agent_task(agent_type="ORACLE", user_id=uuid.uuid4(), task_type="X", data={})
    with pytest.raises(BadRequest, match="Unknown priority"):
        enqueue_agent_task(
            agent_type="CONTENT_CURATOR",
            user_id=uuid.uuid4(),
            task_type="X",
            data={},
            priority="WHENEVER",
        )


@pytest.mark.asyncio
async def test_tasks_endpoint_enqueues(
    client: httpx.AsyncClient, broker: Any, user: dict[str, Any]
) -> None:
    r = await client.post(
        "/api/agents/tasks",
        headers=user["headers"],
        json={"agent_type": "PRACTICE_COACH", "task_type": "GENERATE_SCENARIO", "data": {}},
    )
    assert r.status_code == 202, r.text
    data = r.json()["data"]
    assert data["queue"] == AGENT_TASKS_QUEUE
    assert data["priority"] == "MEDIUM"

    r = await client.post(
        "/api/agents/tasks",
        headers=user["headers"],
        json={"agent_type": "ORACLE", "task_type": "X"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_run_agent_task_uses_its_own_engine(
    app: FastAPI, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    fake_llm.queue(
        [{"title": "Vector Databases", "category": "TOOLS", "definition": "Stores embeddings."}]
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_llm.handler)) as http:
        result = await run_agent_task(
            settings=app.state.settings,
            agent_type=AgentType.content_curator,
            user_id=uuid.UUID(user["user"]["id"]),
            task_type="EXTRACT_TOPICS",
            data={"content": "Vector DBs are hot."},
            http=http,
        )

    assert [t["title"] for t in result["topics"]] == ["Vector Databases"]
    assert result["topics"][0]["metadata"]["extracted_for"] == user["user"]["id"]
