"""
tests.test_models

ORM attribute validators and enum persistence.
"""

from __future__ import annotations

import pytest

from synapse_learning.db.models import (
    LearningPath,
    LearningPathTopic,
    LearningSession,
    Topic,
    User,
    UserProgress,
    UserRole,
    default_preferences,
)
from synapse_learning.errors import ValidationError


def test_email_is_normalized() -> None:
    user = User(email="  Ada@Example.COM ", password_hash="x", first_name="A", last_name="L")
    assert user.email == "ada@example.com"


def test_invalid_email_is_rejected() -> None:
    with pytest.raises(ValidationError, match="email"):
        User(email="nope", password_hash="x", first_name="A", last_name="L")


@pytest.mark.parametrize(
    ("factory", "message"),
    [
        (lambda: UserProgress(confidence_level=0), "confidence_level"),
        (lambda: UserProgress(mastery_score=1.5), "mastery_score"),
        (lambda: UserProgress(difficulty_rating=6), "difficulty_rating"),
        (lambda: LearningSession(confidence_before=11), "confidence_before"),
        (lambda: LearningPath(progress=-0.1), "progress"),
        (lambda: LearningPathTopic(target_mastery_score=2), "target_mastery_score"),
        (lambda: Topic(estimated_time_minutes=0), "estimated_time_minutes"),
    ],
)
def test_out_of_range_values_raise(factory, message: str) -> None:
    with pytest.raises(ValidationError, match=message) as info:
        factory()
    assert info.value.status_code == 400
    assert isinstance(info.value, ValueError)


def test_boundaries_are_accepted() -> None:
    p = UserProgress(confidence_level=10, mastery_score=1.0, difficulty_rating=1)
    assert p.confidence_level == 10
    s = LearningSession(confidence_before=1, confidence_after=None)
    assert s.confidence_after is None


def test_enum_values_match_wire_format() -> None:
    assert UserRole("PM") is UserRole.pm
    assert default_preferences() == {
        "daily_time_goal": 30,
        "difficulty": "medium",
        "topics": [],
        "reminder_time": "09:00",
    }
