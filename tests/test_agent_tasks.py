"""
tests.test_agent_tasks

Named agent tasks run through the orchestrator, and the LLM retry loop.

Responsibilities:
- Cover the research analyses and learning-path adaptation tasks end to end.
- Pin the backoff schedule and which provider errors are retried.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import httpx
import pytest
from fastapi import FastAPI

from conftest import FakeLLM, register_user
from synapse_learning.agents import ConversationCoachAgent
from synapse_learning.db.models import AgentType
from synapse_learning.errors import BadRequest, LLMError, LLMNotConfigured, NotFound
from synapse_learning.llm.client import LLMClient
from synapse_learning.settings import Settings
from test_agents_api import NEWSLETTER_TOPICS
from test_orchestrator import _orchestrator


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay: float, *args: Any, **kwargs: Any) -> None:
        # Zero-delay sleeps are plain event-loop yields.
        if delay:
            delays.append(delay)
        else:
            await real_sleep(0)

    monkeypatch.setattr("synapse_learning.agents.base.asyncio.sleep", fake_sleep)
    return delays


def _coach(settings: Settings, fake_llm: FakeLLM, *, max_retries: int) -> ConversationCoachAgent:
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_llm.handler))
    return ConversationCoachAgent(
        session=None,  # type: ignore[arg-type]
        llm=LLMClient(settings=settings, http=http),
        model="gpt-3.5-turbo",
        max_retries=max_retries,
    )


@pytest.mark.asyncio
async def test_provider_error_is_retried_with_backoff(
    settings: Settings, fake_llm: FakeLLM, sleeps: list[float]
) -> None:
    fake_llm.statuses = [502]
    agent = _coach(settings, fake_llm, max_retries=3)

    assert await agent.generate_response("hi") == "Happy to help with that."
    assert len(fake_llm.requests) == 2
    assert sleeps == [1.0]
    # Only the successful attempt is counted.
    assert agent.tokens_used == 100
    assert len(agent.messages) == 2


@pytest.mark.asyncio
async def test_retries_stop_after_max_attempts(
    settings: Settings, fake_llm: FakeLLM, sleeps: list[float]
) -> None:
    fake_llm.status_code = 503
    agent = _coach(settings, fake_llm, max_retries=3)

    with pytest.raises(LLMError, match="status 503"):
        await agent.generate_response("hi")
    assert len(fake_llm.requests) == 3
    assert sleeps == [1.0, 2.0]
    assert agent.tokens_used == 0


@pytest.mark.asyncio
async def test_missing_api_key_is_never_retried(
    settings: Settings, fake_llm: FakeLLM, sleeps: list[float]
) -> None:
    unconfigured = settings.model_copy(update={"openai_api_key": None})
    agent = _coach(unconfigured, fake_llm, max_retries=3)

    with pytest.raises(LLMNotConfigured):
        await agent.generate_response("hi")
    assert fake_llm.requests == []
    assert sleeps == []


@pytest.mark.asyncio
async def test_chat_endpoint_uses_configured_retries(
    app: FastAPI,
    client: httpx.AsyncClient,
    fake_llm: FakeLLM,
    user: dict[str, Any],
    sleeps: list[float],
) -> None:
    configured = app.state.settings
    app.state.settings = configured.model_copy(update={"llm_max_retries": 2})
    fake_llm.statuses = [500]
    try:
        r = await client.post("/api/agents/chat", headers=user["headers"], json={"message": "hi"})
    finally:
        app.state.settings = configured
    assert r.status_code == 200, r.text
    assert r.json()["data"]["response"] == "Happy to help with that."
    assert len(fake_llm.requests) == 2
    assert sleeps == [1.0]


@pytest.mark.asyncio
async def test_competitive_analysis_task(
    app: FastAPI, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    user_id = uuid.UUID(user["user"]["id"])
    fake_llm.queue(
        {
            "company_profiles": [{"company": "Acme", "ai_strategy": "Copilots everywhere"}],
            "market_leadership": "Acme",
            "recommendations": ["Partner early"],
        }
    )
    async with app.state.sessionmaker() as session:
        orchestrator = _orchestrator(app, session, fake_llm)
        result = await orchestrator.run_task(
            user_id=user_id,
            agent_type=AgentType.research_assistant,
            task_type="COMPETITIVE_ANALYSIS",
            data={"companies": ["Acme", "Globex"], "technology": "LLM agents"},
        )
        assert result["competitive_analysis"]["market_leadership"] == "Acme"
        assert result["scope"] == {"companies": ["Acme", "Globex"], "technology": "LLM agents"}
        assert "Acme, Globex" in fake_llm.requests[-1]["messages"][1]["content"]

        with pytest.raises(BadRequest, match="At least one company"):
            await orchestrator.run_task(
                user_id=user_id,
                agent_type=AgentType.research_assistant,
                task_type="COMPETITIVE_ANALYSIS",
                data={"technology": "LLM agents"},
            )


@pytest.mark.asyncio
async def test_market_research_task_falls_back_on_unparseable_reply(
    app: FastAPI, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    user_id = uuid.UUID(user["user"]["id"])
    fake_llm.queue("The market is big.")
    async with app.state.sessionmaker() as session:
        orchestrator = _orchestrator(app, session, fake_llm)
        result = await orchestrator.run_task(
            user_id=user_id,
            agent_type=AgentType.research_assistant,
            task_type="MARKET_RESEARCH",
            data={"market": "Insurance", "technology": "computer vision"},
        )
        assert result["scope"] == {
            "market": "Insurance",
            "technology": "computer vision",
            "geography": "Global",
        }
        assert result["market_research"]["barriers"] == [
            "Skills shortages",
            "Data quality and governance",
        ]

        with pytest.raises(BadRequest, match="Market is required"):
            await orchestrator.run_task(
                user_id=user_id,
                agent_type=AgentType.research_assistant,
                task_type="MARKET_RESEARCH",
                data={},
            )


async def _path_with_progress(
    client: httpx.AsyncClient, fake_llm: FakeLLM, headers: dict[str, str]
) -> tuple[str, list[dict[str, Any]]]:
    fake_llm.queue(NEWSLETTER_TOPICS)
    r = await client.post(
        "/api/agents/process-newsletter", headers=headers, json={"content": "newsletter"}
    )
    topics = r.json()["data"]["topics"]

    fake_llm.queue({"title": "Adaptive path", "topic_ids": [t["id"] for t in topics]})
    r = await client.post("/api/agents/generate-learning-path", headers=headers, json={})
    path_id = r.json()["data"]["learning_path"]["id"]

    sessions = [
        {"topic_id": topics[0]["id"], "confidence_after": 9, "completion_status": "COMPLETED"},
        {"topic_id": topics[1]["id"], "confidence_after": 3},
    ]
    for body in sessions:
        r = await client.post(
            "/api/progress/sessions",
            headers=headers,
            json={"learning_path_id": path_id, "duration_minutes": 20, **body},
        )
        assert r.status_code == 201, r.text
    return path_id, topics


@pytest.mark.asyncio
async def test_adapt_learning_path_task_stores_adaptation(
    app: FastAPI, client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    path_id, topics = await _path_with_progress(client, fake_llm, user["headers"])

    fake_llm.queue(
        {
            "should_adapt": True,
            "adaptation_type": ["pace", "NOT_A_TYPE"],
            "recommendations": ["Revisit model evaluation with a worked example"],
            "reasoning": "Confidence is low on one topic.",
        }
    )
    async with app.state.sessionmaker() as session:
        orchestrator = _orchestrator(app, session, fake_llm)
        result = await orchestrator.run_task(
            user_id=uuid.UUID(user["user"]["id"]),
            agent_type=AgentType.learning_strategist,
            task_type="ADAPT_LEARNING_PATH",
            data={"path_id": path_id},
        )

    analysis = result["progress_analysis"]
    assert analysis["strong_areas"] == [topics[0]["title"]]
    assert analysis["struggling_areas"] == [topics[1]["title"]]
    assert analysis["summary"] == "1 of 2 topics completed"
    assert result["adaptation"]["should_adapt"] is True
    assert result["adaptation"]["adaptation_type"] == ["PACE"]

    prompt = fake_llm.requests[-1]["messages"][1]["content"]
    assert f"Struggling areas: {topics[1]['title']}" in prompt
    assert "Current path: Adaptive path" in prompt

    r = await client.get("/api/learning-paths", headers=user["headers"])
    meta = r.json()["data"][0]["metadata"]
    assert meta["adaptation_count"] == 1
    assert meta["last_adaptation"]["recommendations"] == [
        "Revisit model evaluation with a worked example"
    ]


@pytest.mark.asyncio
async def test_adapt_learning_path_rejects_foreign_or_invalid_paths(
    app: FastAPI, client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    path_id, _ = await _path_with_progress(client, fake_llm, user["headers"])
    other = await register_user(client, email="grace@example.com")

    async with app.state.sessionmaker() as session:
        orchestrator = _orchestrator(app, session, fake_llm)
        with pytest.raises(NotFound, match="Learning path not found"):
            await orchestrator.run_task(
                user_id=uuid.UUID(other["user"]["id"]),
                agent_type=AgentType.learning_strategist,
                task_type="ADAPT_LEARNING_PATH",
                data={"path_id": path_id},
            )
        with pytest.raises(BadRequest, match="valid path_id"):
            await orchestrator.run_task(
                user_id=uuid.UUID(other["user"]["id"]),
                agent_type=AgentType.learning_strategist,
                task_type="ADAPT_LEARNING_PATH",
                data={"path_id": "not-a-uuid"},
            )


@pytest.mark.asyncio
async def test_practice_scenario_requires_a_valid_topic_id(
    app: FastAPI, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    async with app.state.sessionmaker() as session:
        orchestrator = _orchestrator(app, session, fake_llm)
        with pytest.raises(BadRequest, match="valid topic_id"):
            await orchestrator.process_learning_request(
                user_id=uuid.UUID(user["user"]["id"]),
                request_type="PRACTICE_SCENARIO",
                data={"topic_id": "nope"},
            )
