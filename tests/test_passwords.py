from __future__ import annotations

import bcrypt
import pytest

from synapse_learning.auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from synapse_learning.errors import BadRequest


def test_hash_and_verify() -> None:
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert hasher.verify("s3cret-pass", hashed)
    assert not hasher.verify("other-pass", hashed)


def test_empty_inputs() -> None:
    hasher = PasswordHasher(rounds=4)
    with pytest.raises(BadRequest, match="empty"):
        hasher.hash("")
    assert not hasher.verify("", hasher.hash("x"))
    assert not hasher.verify("x", "not-a-bcrypt-hash")


def test_password_length_is_capped_in_bytes() -> None:
    hasher = PasswordHasher(rounds=4)
    at_limit = "x" * MAX_PASSWORD_BYTES
    assert hasher.verify(at_limit, hasher.hash(at_limit))

    with pytest.raises(BadRequest, match="longer than 72 bytes") as info:
        hasher.hash("x" * 100)
    assert info.value.status_code == 400

    # 25 characters, 75 bytes.
    with pytest.raises(BadRequest):
        hasher.hash("€" * 25)

    stored = bcrypt.hashpw(at_limit.encode(), bcrypt.gensalt(rounds=4)).decode()
    assert not hasher.verify(at_limit + "y", stored)
