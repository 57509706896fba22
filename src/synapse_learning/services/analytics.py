"""
synapse_learning.services.analytics

Learning analytics engine.

Responsibilities:
- Load a learner's progress rows and learning sessions.
- Compute velocity, confidence gain, streaks, category coverage, weekly
  progress, role skill gaps and recommendations in memory.
- Derive dashboard insights and a role-cohort comparison.
"""

from __future__ import annotations

import math
import uuid
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.base import utcnow
from synapse_learning.db.models import (
    CompletionStatus,
    LearningSession,
    ProgressStatus,
    TopicCategory,
    User,
    UserProgress,
    UserRole,
)
from synapse_learning.db.repositories.progress import ProgressRepo
from synapse_learning.db.repositories.users import UserRepo
from synapse_learning.errors import NotFound

VELOCITY_WINDOW_DAYS = 28
WEEKLY_WINDOW_DAYS = 84
WEEKS_SHOWN = 12
INACTIVITY_DAYS = 7
MAX_RECOMMENDATIONS = 5

COMPLETED_STATES = frozenset({ProgressStatus.completed, ProgressStatus.mastered})

# Required proficiency per category on a 1-10 scale.
ROLE_REQUIREMENTS: dict[UserRole, dict[TopicCategory, int]] = {
    UserRole.pm: {
        TopicCategory.ai_fundamentals: 8,
        TopicCategory.machine_learning: 6,
        TopicCategory.nlp: 5,
        TopicCategory.computer_vision: 4,
        TopicCategory.ethics: 9,
        TopicCategory.business_ai: 9,
        TopicCategory.tools: 7,
        TopicCategory.trends: 8,
    },
    UserRole.designer: {
        TopicCategory.ai_fundamentals: 7,
        TopicCategory.machine_learning: 5,
        TopicCategory.nlp: 6,
        TopicCategory.computer_vision: 8,
        TopicCategory.ethics: 8,
        TopicCategory.business_ai: 6,
        TopicCategory.tools: 8,
        TopicCategory.trends: 7,
    },
    UserRole.executive: {
        TopicCategory.ai_fundamentals: 8,
        TopicCategory.machine_learning: 5,
        TopicCategory.nlp: 4,
        TopicCategory.computer_vision: 3,
        TopicCategory.ethics: 10,
        TopicCategory.business_ai: 10,
        TopicCategory.tools: 5,
        TopicCategory.trends: 9,
    },
    UserRole.developer: {
        TopicCategory.ai_fundamentals: 9,
        TopicCategory.machine_learning: 8,
        TopicCategory.nlp: 7,
        TopicCategory.computer_vision: 7,
        TopicCategory.ethics: 7,
        TopicCategory.business_ai: 6,
        TopicCategory.tools: 9,
        TopicCategory.trends: 6,
    },
}

BENCHMARKS: dict[str, float] = {
    "average_topics_completed": 15,
    "average_learning_velocity": 1.5,
    "average_streak": 5,
}


def week_start(day: date) -> date:
    # ISO weeks start on Monday.
    return day - timedelta(days=day.weekday())


def learning_velocity(progress: list[UserProgress], *, now: datetime) -> float:
    since = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    recent = [
        p
        for p in progress
        if p.status in COMPLETED_STATES and p.completed_at is not None and p.completed_at >= since
    ]
    return len(recent) / (VELOCITY_WINDOW_DAYS / 7)


def average_confidence_gain(sessions: list[LearningSession]) -> float:
    gains = [
        s.confidence_after - s.confidence_before
        for s in sessions
        if s.confidence_before is not None
        and s.confidence_after is not None
        and s.confidence_after > s.confidence_before
    ]
    return sum(gains) / len(gains) if gains else 0.0


def learning_streaks(sessions: list[LearningSession], *, today: date) -> tuple[int, int]:
    completed = (s for s in sessions if s.completion_status == CompletionStatus.completed)
    days = sorted({s.start_time.date() for s in completed}, reverse=True)
    if not days:
        return 0, 0

    current = 0
    for i, day in enumerate(days):
        if day == today - timedelta(days=i):
            current += 1
        else:
            break

    longest = run = 1
    for prev, cur in zip(days, days[1:]):
        if (prev - cur).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    return current, max(longest, run)


def topics_by_category(progress: list[UserProgress]) -> dict[str, int]:
    counts = {c.value: 0 for c in TopicCategory}
    for p in progress:
        if p.status in COMPLETED_STATES and p.topic is not None:
            counts[p.topic.category.value] += 1
    return counts


def weekly_progress(sessions: list[LearningSession], *, now: datetime) -> list[dict[str, Any]]:
    since = now - timedelta(days=WEEKLY_WINDOW_DAYS)
    weeks: dict[date, dict[str, float]] = defaultdict(
        lambda: {"completed": 0, "minutes": 0, "conf_sum": 0, "conf_n": 0}
    )
    for s in sessions:
        if s.start_time < since:
            continue
        w = weeks[week_start(s.start_time.date())]
        if s.completion_status == CompletionStatus.completed:
            w["completed"] += 1
        w["minutes"] += s.duration_minutes or 0
        if s.confidence_after is not None:
            w["conf_sum"] += s.confidence_after
            w["conf_n"] += 1

    rows = [
        {
            "week": key.isoformat(),
            "topics_completed": int(w["completed"]),
            "time_spent_minutes": int(w["minutes"]),
            "average_confidence": round(w["conf_sum"] / w["conf_n"], 2) if w["conf_n"] else 0.0,
        }
        for key, w in sorted(weeks.items())
    ]
    return rows[-WEEKS_SHOWN:]


def skill_gaps(progress: list[UserProgress], role: UserRole) -> list[dict[str, Any]]:
    requirements = ROLE_REQUIREMENTS.get(role, ROLE_REQUIREMENTS[UserRole.pm])
    levels: dict[TopicCategory, list[float]] = defaultdict(list)
    for p in progress:
        if p.status in COMPLETED_STATES and p.topic is not None:
            levels[p.topic.category].append(p.mastery_score * 10)

    gaps = []
    for category, required in requirements.items():
        scores = levels.get(category, [])
        current = sum(scores) / len(scores) if scores else 0.0
        gaps.append(
            {
                "category": category.value,
                "required_level": required,
                "current_level": round(current),
                "gap": round(max(0.0, required - current), 2),
            }
        )
    return sorted(gaps, key=lambda g: g["gap"], reverse=True)


def recommendations(
    gaps: list[dict[str, Any]],
    velocity: float,
    sessions: list[LearningSession],
    *,
    now: datetime,
) -> list[str]:
    out: list[str] = []
    for gap in gaps[:3]:
        if gap["gap"] > 2:
            label = gap["category"].replace("_", " ").lower()
            out.append(
                f"Focus on {label} - you're {gap['gap']:g} points below the recommended "
                "level for your role"
            )

    if velocity < 1:
        out.append("Try to complete at least 1 topic per week to maintain steady progress")
    elif velocity > 3:
        out.append(
            "Great pace! Consider spending more time on practice scenarios to deepen "
            "your understanding"
        )

    since = now - timedelta(days=INACTIVITY_DAYS)
    if not any(s.start_time >= since for s in sessions):
        out.append(
            "You haven't learned anything this week. Try to maintain a consistent "
            "learning schedule"
        )

    if not out:
        out.append(
            "Keep up the great work! Consider exploring advanced topics in your strongest areas"
        )
    return out[:MAX_RECOMMENDATIONS]


def compute_analytics(
    user: User,
    progress: list[UserProgress],
    sessions: list[LearningSession],
    *,
    now: datetime,
) -> dict[str, Any]:
    velocity = learning_velocity(progress, now=now)
    current, longest = learning_streaks(sessions, today=now.date())
    gaps = skill_gaps(progress, user.role)
    return {
        "user_id": str(user.id),
        "total_topics_completed": sum(1 for p in progress if p.status in COMPLETED_STATES),
        "total_time_spent_minutes": sum(p.time_spent_minutes or 0 for p in progress),
        "learning_velocity": round(velocity, 2),
        "average_confidence_gain": round(average_confidence_gain(sessions), 2),
        "current_streak": current,
        "longest_streak": longest,
        "topics_by_category": topics_by_category(progress),
        "weekly_progress": weekly_progress(sessions, now=now),
        "skill_gaps": gaps,
        "recommendations": recommendations(gaps, velocity, sessions, now=now),
    }


def derive_insights(analytics: dict[str, Any]) -> dict[str, list[str]]:
    insights: list[str] = []
    achievements: list[str] = []
    milestones: list[str] = []

    velocity = analytics["learning_velocity"]
    streak = analytics["current_streak"]
    gain = analytics["average_confidence_gain"]
    completed = analytics["total_topics_completed"]

    if velocity > 2:
        insights.append(f"You're learning {velocity:.1f} topics per week - that's above average!")
    if streak > 7:
        insights.append(
            f"Amazing {streak}-day learning streak! Consistency is key to mastery."
        )
    if gain > 3:
        insights.append(
            f"Your confidence increases by {gain:.1f} points on average per session."
        )

    if completed >= 10:
        achievements.append("Completed 10+ topics")
    if streak >= 7:
        achievements.append("7-day learning streak")
    if analytics["total_time_spent_minutes"] >= 300:
        achievements.append("5+ hours of learning time")

    next_topics = math.ceil(completed / 5) * 5
    if next_topics > completed:
        milestones.append(f"Complete {next_topics} topics")
    next_streak = math.ceil(streak / 7) * 7
    if next_streak > streak:
        milestones.append(f"Reach {next_streak}-day streak")

    return {"insights": insights, "achievements": achievements, "next_milestones": milestones}


def compare_to_benchmarks(analytics: dict[str, Any]) -> dict[str, Any]:
    percentile = 50
    if analytics["total_topics_completed"] > BENCHMARKS["average_topics_completed"]:
        percentile += 25
    if analytics["learning_velocity"] > BENCHMARKS["average_learning_velocity"]:
        percentile += 15
    if analytics["current_streak"] > BENCHMARKS["average_streak"]:
        percentile += 10
    percentile = min(95, max(5, percentile))

    if percentile > 75:
        comparison = "You're performing better than most users with your role!"
    elif percentile > 50:
        comparison = "You're doing great! A bit above average."
    else:
        comparison = "Keep going! There's room for improvement."
    return {"percentile": percentile, "comparison": comparison, "benchmarks": dict(BENCHMARKS)}


class LearningAnalyticsEngine:
    def __init__(self, *, session: AsyncSession) -> None:
        self._users = UserRepo(session)
        self._progress = ProgressRepo(session)

    async def _load(
        self, user_id: uuid.UUID
    ) -> tuple[User, list[UserProgress], list[LearningSession]]:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        progress = await self._progress.list_progress(user_id)
        sessions = await self._progress.list_sessions(user_id)
        return user, progress, sessions

    async def calculate_user_analytics(
        self, user_id: uuid.UUID, *, now: datetime | None = None
    ) -> dict[str, Any]:
        user, progress, sessions = await self._load(user_id)
        return compute_analytics(user, progress, sessions, now=now or utcnow())

    async def calculate_learning_insights(
        self, user_id: uuid.UUID, *, now: datetime | None = None
    ) -> dict[str, list[str]]:
        return derive_insights(await self.calculate_user_analytics(user_id, now=now))

    async def get_comparative_analytics(
        self, user_id: uuid.UUID, *, now: datetime | None = None
    ) -> dict[str, Any]:
        user, progress, sessions = await self._load(user_id)
        if await self._users.count_active_by_role(user.role) < 2:
            return {
                "percentile": 50,
                "comparison": "Not enough data for comparison",
                "benchmarks": {},
            }
        analytics = compute_analytics(user, progress, sessions, now=now or utcnow())
        return compare_to_benchmarks(analytics)


# --- Module Notes -----------------------------------------------------------
# All aggregation is in-memory over one learner's rows; cohort benchmarks are
# fixed reference values rather than live aggregates.
