"""
synapse_learning.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, decoded from the bearer token.
    """

    subject: str
    email: str
    role: str

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.subject)
