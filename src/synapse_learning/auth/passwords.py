"""
synapse_learning.auth.passwords

Password hashing with bcrypt.
"""

from __future__ import annotations

import bcrypt

from synapse_learning.errors import BadRequest
from synapse_learning.observability.logging import get_logger

log = get_logger(__name__)

# bcrypt only reads the first 72 bytes; newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordHasher:
    """
    Salted bcrypt hashes; `rounds` is the bcrypt cost factor (12 in production,
    lower in tests to keep them fast).
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        if not password:
            raise BadRequest("Password cannot be empty")
        if password_too_long(password):
            raise BadRequest(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash or password_too_long(password):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            # Malformed stored hash: treat as a failed match.
            log.warning("password_verify_failed", error=str(e))
            return False
