"""
tests.test_progress_api

Learning sessions, per-topic progress, path completion and analytics endpoints.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from conftest import FakeLLM, register_user
from test_agents_api import NEWSLETTER_TOPICS


async def _topics(client: httpx.AsyncClient, fake_llm: FakeLLM, headers: dict[str, str]) -> list:
    fake_llm.queue(NEWSLETTER_TOPICS)
    r = await client.post(
        "/api/agents/process-newsletter", headers=headers, json={"content": "newsletter"}
    )
    return r.json()["data"]["topics"]


@pytest.mark.asyncio
async def test_record_session_updates_progress(
    client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    topics = await _topics(client, fake_llm, user["headers"])

    r = await client.post(
        "/api/progress/sessions",
        headers=user["headers"],
        json={
            "topic_id": topics[0]["id"],
            "session_type": "PRACTICE",
            "duration_minutes": 30,
            "confidence_before": 3,
            "confidence_after": 9,
            "completion_status": "COMPLETED",
        },
    )
    assert r.status_code == 201, r.text
    progress = r.json()["data"]["progress"]
    assert progress["status"] == "MASTERED"
    assert progress["confidence_level"] == 9
    assert progress["time_spent_minutes"] == 30
    assert progress["practice_attempts"] == 1
    assert progress["successful_practices"] == 1

    r = await client.post(
        "/api/progress/sessions",
        headers=user["headers"],
        json={"topic_id": topics[1]["id"], "duration_minutes": 10, "confidence_after": 4},
    )
    assert r.json()["data"]["progress"]["status"] == "IN_PROGRESS"

    r = await client.get("/api/progress", headers=user["headers"])
    assert {p["topic_id"] for p in r.json()["data"]} == {t["id"] for t in topics}


@pytest.mark.asyncio
async def test_out_of_range_confidence_is_rejected(
    client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    topics = await _topics(client, fake_llm, user["headers"])
    r = await client.post(
        "/api/progress/sessions",
        headers=user["headers"],
        json={"topic_id": topics[0]["id"], "confidence_after": 11},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "confidence_after must be between 1 and 10, got 11"


@pytest.mark.asyncio
async def test_session_for_unknown_topic_is_404(
    client: httpx.AsyncClient, user: dict[str, Any]
) -> None:
    r = await client.post(
        "/api/progress/sessions",
        headers=user["headers"],
        json={"topic_id": "00000000-0000-4000-8000-000000000000"},
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_completing_every_path_topic_completes_the_path(
    client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    topics = await _topics(client, fake_llm, user["headers"])
    fake_llm.queue({"title": "Short path", "topic_ids": [t["id"] for t in topics]})
    r = await client.post(
        "/api/agents/generate-learning-path", headers=user["headers"], json={}
    )
    path_id = r.json()["data"]["learning_path"]["id"]

    for i, topic in enumerate(topics, start=1):
        r = await client.post(
            "/api/progress/sessions",
            headers=user["headers"],
            json={
                "topic_id": topic["id"],
                "learning_path_id": path_id,
                "duration_minutes": 15,
                "completion_status": "COMPLETED",
            },
        )
        assert r.status_code == 201, r.text

        r = await client.get("/api/learning-paths", headers=user["headers"])
        path = r.json()["data"][0]
        assert path["progress"] == pytest.approx(i / len(topics))

    assert path["status"] == "COMPLETED"
    assert all(t["is_completed"] for t in path["topics"])


@pytest.mark.asyncio
async def test_analytics_endpoints(
    client: httpx.AsyncClient, fake_llm: FakeLLM, user: dict[str, Any]
) -> None:
    topics = await _topics(client, fake_llm, user["headers"])
    await client.post(
        "/api/progress/sessions",
        headers=user["headers"],
        json={
            "topic_id": topics[0]["id"],
            "duration_minutes": 20,
            "confidence_before": 2,
            "confidence_after": 6,
            "completion_status": "COMPLETED",
        },
    )

    r = await client.get("/api/analytics/overview", headers=user["headers"])
    assert r.status_code == 200
    overview = r.json()["data"]
    assert overview["total_topics_completed"] == 1
    assert overview["total_time_spent_minutes"] == 20
    assert overview["average_confidence_gain"] == 4.0
    assert overview["topics_by_category"]["BUSINESS_AI"] == 1
    assert len(overview["skill_gaps"]) == 8
    assert overview["recommendations"]

    r = await client.get("/api/analytics/insights", headers=user["headers"])
    assert set(r.json()["data"]) == {"insights", "achievements", "next_milestones"}

    r = await client.get("/api/analytics/comparison", headers=user["headers"])
    assert r.json()["data"]["comparison"] == "Not enough data for comparison"

    await register_user(client, email="grace@example.com")
    r = await client.get("/api/analytics/comparison", headers=user["headers"])
    data = r.json()["data"]
    assert 5 <= data["percentile"] <= 95
    assert data["benchmarks"]["average_topics_completed"] == 15
