"""
tests.test_analytics

Pure analytics calculations over transient ORM rows with a fixed clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from synapse_learning.db.models import (
    CompletionStatus,
    LearningSession,
    ProgressStatus,
    SessionType,
    Topic,
    TopicCategory,
    UserProgress,
    UserRole,
)
from synapse_learning.services.analytics import (
    average_confidence_gain,
    compare_to_benchmarks,
    derive_insights,
    learning_streaks,
    learning_velocity,
    recommendations,
    skill_gaps,
    topics_by_category,
    week_start,
    weekly_progress,
)

NOW = datetime(2024, 3, 15, 12, 0)  # a Friday


def _topic(category: TopicCategory) -> Topic:
    return Topic(
        title=category.value, slug=category.value.lower(), category=category, definition="d"
    )


def _progress(
    category: TopicCategory,
    *,
    status: ProgressStatus = ProgressStatus.completed,
    completed_days_ago: int | None = 1,
    mastery: float = 0.5,
) -> UserProgress:
    p = UserProgress(
        status=status,
        mastery_score=mastery,
        completed_at=NOW - timedelta(days=completed_days_ago) if completed_days_ago else None,
    )
    p.topic = _topic(category)
    return p


def _session(
    day: date,
    *,
    status: CompletionStatus = CompletionStatus.completed,
    before: int | None = None,
    after: int | None = None,
    minutes: int = 10,
) -> LearningSession:
    return LearningSession(
        session_type=SessionType.reading,
        start_time=datetime.combine(day, datetime.min.time()) + timedelta(hours=9),
        duration_minutes=minutes,
        confidence_before=before,
        confidence_after=after,
        completion_status=status,
    )


def test_week_start_is_monday() -> None:
    assert week_start(date(2024, 3, 15)) == date(2024, 3, 11)
    assert week_start(date(2024, 3, 11)) == date(2024, 3, 11)


def test_learning_velocity_counts_recent_completions() -> None:
    progress = [
        _progress(TopicCategory.nlp, completed_days_ago=2),
        _progress(TopicCategory.nlp, status=ProgressStatus.mastered, completed_days_ago=20),
        _progress(TopicCategory.nlp, completed_days_ago=40),
        _progress(TopicCategory.nlp, status=ProgressStatus.in_progress, completed_days_ago=None),
    ]
    assert learning_velocity(progress, now=NOW) == 0.5


def test_average_confidence_gain_ignores_non_gains() -> None:
    sessions = [
        _session(NOW.date(), before=2, after=6),
        _session(NOW.date(), before=5, after=7),
        _session(NOW.date(), before=8, after=4),
        _session(NOW.date(), before=None, after=9),
    ]
    assert average_confidence_gain(sessions) == 3.0
    assert average_confidence_gain([]) == 0.0


def test_learning_streaks() -> None:
    today = NOW.date()
    days = [today - timedelta(days=n) for n in (0, 1, 2)]
    days += [date(2024, 3, 1) + timedelta(days=n) for n in range(4)]
    sessions = [_session(d) for d in days]
    sessions.append(_session(today, status=CompletionStatus.partial))

    assert learning_streaks(sessions, today=today) == (3, 4)
    assert learning_streaks([_session(today - timedelta(days=2))], today=today) == (0, 1)
    assert learning_streaks([], today=today) == (0, 0)


def test_topics_by_category_covers_every_category() -> None:
    counts = topics_by_category(
        [
            _progress(TopicCategory.ethics),
            _progress(TopicCategory.ethics, status=ProgressStatus.mastered),
            _progress(TopicCategory.tools, status=ProgressStatus.in_progress),
        ]
    )
    assert counts["ETHICS"] == 2
    assert counts["TOOLS"] == 0
    assert set(counts) == {c.value for c in TopicCategory}


def test_weekly_progress_groups_by_week() -> None:
    sessions = [
        _session(date(2024, 3, 15), after=8, minutes=20),
        _session(date(2024, 3, 12), after=6, minutes=10),
        _session(date(2024, 3, 5), status=CompletionStatus.partial, minutes=5),
        _session(date(2023, 10, 1), minutes=99),
    ]
    rows = weekly_progress(sessions, now=NOW)
    assert rows == [
        {
            "week": "2024-03-04",
            "topics_completed": 0,
            "time_spent_minutes": 5,
            "average_confidence": 0.0,
        },
        {
            "week": "2024-03-11",
            "topics_completed": 2,
            "time_spent_minutes": 30,
            "average_confidence": 7.0,
        },
    ]


def test_skill_gaps_for_pm_are_sorted_by_gap() -> None:
    gaps = skill_gaps([_progress(TopicCategory.ethics, mastery=0.9)], UserRole.pm)
    assert gaps[0]["category"] == "BUSINESS_AI"
    assert gaps[0]["gap"] == 9
    ethics = next(g for g in gaps if g["category"] == "ETHICS")
    assert ethics == {"category": "ETHICS", "required_level": 9, "current_level": 9, "gap": 0.0}
    assert gaps[-1]["category"] == "ETHICS"


def test_unknown_role_uses_pm_requirements() -> None:
    assert skill_gaps([], UserRole.other) == skill_gaps([], UserRole.pm)


def test_recommendations() -> None:
    gaps = skill_gaps([], UserRole.pm)
    recs = recommendations(gaps, 0.5, [], now=NOW)
    # Ties keep requirement order, so ETHICS precedes BUSINESS_AI.
    assert recs[0].startswith("Focus on ethics - you're 9 points below")
    assert any("at least 1 topic per week" in r for r in recs)
    assert any("haven't learned anything this week" in r for r in recs)
    assert len(recs) == 5

    recent = [_session(NOW.date())]
    assert recommendations([], 2.0, recent, now=NOW) == [
        "Keep up the great work! Consider exploring advanced topics in your strongest areas"
    ]


def test_derive_insights() -> None:
    out = derive_insights(
        {
            "learning_velocity": 2.5,
            "current_streak": 8,
            "average_confidence_gain": 3.5,
            "total_topics_completed": 12,
            "total_time_spent_minutes": 320,
        }
    )
    assert len(out["insights"]) == 3
    assert out["achievements"] == [
        "Completed 10+ topics",
        "7-day learning streak",
        "5+ hours of learning time",
    ]
    assert out["next_milestones"] == ["Complete 15 topics", "Reach 14-day streak"]


def test_compare_to_benchmarks() -> None:
    strong = compare_to_benchmarks(
        {"total_topics_completed": 20, "learning_velocity": 2.0, "current_streak": 6}
    )
    assert strong["percentile"] == 95
    assert strong["comparison"] == "You're performing better than most users with your role!"

    new = compare_to_benchmarks(
        {"total_topics_completed": 0, "learning_velocity": 0.0, "current_streak": 0}
    )
    assert new["percentile"] == 50
    assert new["comparison"] == "Keep going! There's room for improvement."
