"""
synapse_learning.db.base

SQLAlchemy declarative base.

Responsibilities:
- Provide a shared DeclarativeBase for all ORM models.
- Provide the naive-UTC clock used for every persisted timestamp.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # Timestamps are stored as naive UTC across all tables.
    return datetime.now(tz=UTC).replace(tzinfo=None)
