from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from synapse_learning.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    decode_and_validate,
    issue_token,
)


def _cfg(**overrides: object) -> JwtConfig:
    params: dict[str, object] = {
        "alg": "HS256",
        "issuer": "synapse-learning",
        "audience": "synapse-api",
        "secret": "unit-test-secret-with-enough-bytes-0123",
    }
    params.update(overrides)
    return JwtConfig(**params)  # type: ignore[arg-type]


def test_issue_and_decode_round_trip() -> None:
    cfg = _cfg()
    subject = str(uuid.uuid4())
    token = issue_token(cfg=cfg, subject=subject, email="a@example.com", role="PM")
    claims = decode_and_validate(cfg=cfg, token=token)
    assert claims["sub"] == subject
    assert claims["email"] == "a@example.com"
    assert claims["role"] == "PM"


def test_wrong_secret_is_rejected() -> None:
    token = issue_token(cfg=_cfg(), subject="x", email="a@example.com", role="PM")
    with pytest.raises(JwtValidationError):
        decode_and_validate(
            cfg=_cfg(secret="another-secret-with-enough-bytes-0123"), token=token
        )


def test_expired_token_is_rejected() -> None:
    cfg = _cfg(ttl=timedelta(seconds=-10))
    token = issue_token(cfg=cfg, subject="x", email="a@example.com", role="PM")
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=cfg, token=token)
