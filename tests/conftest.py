"""
tests.conftest

Shared fixtures for API-level tests.

Responsibilities:
- Build an app against a throwaway SQLite file and run its lifespan explicitly.
- Replace the LLM HTTP client with an `httpx.MockTransport` that replays canned replies.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from synapse_learning.api.app import create_app
from synapse_learning.api.deps import llm_http
from synapse_learning.settings import Settings


class FakeLLM:
    """Chat-completions stand-in: pops queued replies, then falls back to a default."""

    def __init__(self) -> None:
        self.replies: list[Any] = []
        self.requests: list[dict[str, Any]] = []
        self.status_code = 200
        # Per-call statuses, consumed before `status_code` applies.
        self.statuses: list[int] = []
        self.raw_body: str | None = None
        self.default_reply = "Happy to help with that."
        self.tokens_per_call = 100

    def queue(self, *replies: Any) -> None:
        # Non-string replies are sent as JSON text, like a model answering in JSON.
        self.replies.extend(r if isinstance(r, str) else json.dumps(r) for r in replies)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        status = self.statuses.pop(0) if self.statuses else self.status_code
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "boom"}})
        if self.raw_body is not None:
            return httpx.Response(200, text=self.raw_body)
        content = self.replies.pop(0) if self.replies else self.default_reply
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"role": "assistant", "content": content}}],
                "usage": {"total_tokens": self.tokens_per_call},
            },
        )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret-with-enough-bytes-0123456",
        bcrypt_rounds=4,
        openai_api_key="test-key",
        llm_max_retries=1,
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest_asyncio.fixture
async def app(settings: Settings, fake_llm: FakeLLM) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    mock_http = httpx.AsyncClient(transport=httpx.MockTransport(fake_llm.handler))
    app.dependency_overrides[llm_http] = lambda: mock_http

    # httpx ASGITransport does not manage lifespan; run it explicitly.
    async with app.router.lifespan_context(app):
        yield app
    await mock_http.aclose()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def register_user(
    client: httpx.AsyncClient,
    *,
    email: str = "ada@example.com",
    password: str = "correct-horse",
    role: str = "PM",
) -> dict[str, Any]:
    r = await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": password,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "role": role,
        },
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    data["headers"] = {"Authorization": f"Bearer {data['token']}"}
    return data


@pytest_asyncio.fixture
async def user(client: httpx.AsyncClient) -> dict[str, Any]:
    return await register_user(client)


# --- Module Notes -----------------------------------------------------------
# Tests share nothing across functions: every test gets a new SQLite file.
