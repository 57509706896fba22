"""
tests.test_auth

Account endpoints and bearer-token handling.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from conftest import register_user


@pytest.mark.asyncio
async def test_register_returns_user_and_token(user: dict[str, Any]) -> None:
    assert user["token"]
    assert user["user"]["email"] == "ada@example.com"
    assert user["user"]["role"] == "PM"
    assert user["user"]["preferences"]["daily_time_goal"] == 30
    assert "password_hash" not in user["user"]


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(client: httpx.AsyncClient, user: dict[str, Any]) -> None:
    r = await client.post(
        "/api/auth/register",
        json={
            "email": "ADA@example.com",
            "password": "another-pass",
            "first_name": "Ada",
            "last_name": "Again",
        },
    )
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "User with this email already exists"}


@pytest.mark.asyncio
async def test_register_validates_body(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "short", "first_name": "A", "last_name": "B"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_register_rejects_password_over_72_bytes(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/auth/register",
        json={
            "email": "long@example.com",
            "password": "x" * 100,
            "first_name": "A",
            "last_name": "B",
        },
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error.startswith("password:")
    assert "at most 72 bytes" in error
    assert "truncate manually" not in error


@pytest.mark.asyncio
async def test_login_and_me(client: httpx.AsyncClient, user: dict[str, Any]) -> None:
    r = await client.post(
        "/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"}
    )
    assert r.status_code == 200
    token = r.json()["data"]["token"]

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["id"] == user["user"]["id"]


@pytest.mark.asyncio
async def test_login_with_wrong_password(client: httpx.AsyncClient, user: dict[str, Any]) -> None:
    r = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_missing_token_is_401(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Access token is required"}


@pytest.mark.asyncio
async def test_bad_token_is_403(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 403
    assert r.json()["error"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_refresh_update_and_change_password(
    client: httpx.AsyncClient, user: dict[str, Any]
) -> None:
    headers = user["headers"]

    r = await client.post("/api/auth/refresh", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["token"]

    r = await client.patch(
        "/api/auth/me", headers=headers, json={"industry": "Fintech", "experience": "Advanced"}
    )
    assert r.status_code == 200
    assert r.json()["data"]["user"]["industry"] == "Fintech"
    assert r.json()["data"]["user"]["experience"] == "Advanced"

    r = await client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": "wrong-one", "new_password": "brand-new-pass"},
    )
    assert r.status_code == 401

    r = await client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": "correct-horse", "new_password": "\u00e9" * 40},
    )
    assert r.status_code == 400
    assert "at most 72 bytes" in r.json()["error"]

    r = await client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": "correct-horse", "new_password": "brand-new-pass"},
    )
    assert r.status_code == 200
    r = await client.post(
        "/api/auth/login", json={"email": "ada@example.com", "password": "brand-new-pass"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_deactivated_user_cannot_log_in(client: httpx.AsyncClient) -> None:
    other = await register_user(client, email="grace@example.com")
    r = await client.delete("/api/auth/me", headers=other["headers"])
    assert r.status_code == 200

    r = await client.post(
        "/api/auth/login", json={"email": "grace@example.com", "password": "correct-horse"}
    )
    assert r.status_code == 401
