"""
synapse_learning.db.models

Core persistence schema for the learning service.

Responsibilities:
- Define ORM models for learners and learning content:
  - User: learner account and preferences
  - Topic: curated learning unit extracted from content
  - LearningPath / LearningPathTopic: ordered study plan
  - LearningSession: one study activity with confidence self-report
  - UserProgress: per-user, per-topic mastery state
  - AgentSession: telemetry for one agent invocation
  - PracticeScenario: generated practice exercise
- Enforce value ranges at attribute assignment and in the table schema.
"""

from __future__ import annotations

import enum
import re
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Enum,
    Float,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from synapse_learning.db.base import Base, utcnow
from synapse_learning.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _enum(cls: type[enum.Enum]) -> Enum:
    # Persist enum values (e.g. "PM"), not member names.
    return Enum(cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32)


def _check_range(key: str, value: float | int | None, low: float, high: float) -> Any:
    if value is None:
        return value
    if value < low or value > high:
        raise ValidationError(f"{key} must be between {low:g} and {high:g}, got {value}")
    return value


class UserRole(enum.StrEnum):
    pm = "PM"
    designer = "Designer"
    executive = "Executive"
    developer = "Developer"
    other = "Other"


class Experience(enum.StrEnum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"


class TopicCategory(enum.StrEnum):
    ai_fundamentals = "AI_FUNDAMENTALS"
    machine_learning = "MACHINE_LEARNING"
    nlp = "NLP"
    computer_vision = "COMPUTER_VISION"
    ethics = "ETHICS"
    business_ai = "BUSINESS_AI"
    tools = "TOOLS"
    trends = "TRENDS"


class SourceType(enum.StrEnum):
    newsletter = "NEWSLETTER"
    article = "ARTICLE"
    research = "RESEARCH"
    manual = "MANUAL"


class PathType(enum.StrEnum):
    personalized = "PERSONALIZED"
    role_based = "ROLE_BASED"
    skill_based = "SKILL_BASED"
    industry_specific = "INDUSTRY_SPECIFIC"


class PathStatus(enum.StrEnum):
    active = "ACTIVE"
    completed = "COMPLETED"
    paused = "PAUSED"
    archived = "ARCHIVED"


class SessionType(enum.StrEnum):
    reading = "READING"
    practice = "PRACTICE"
    chat = "CHAT"
    assessment = "ASSESSMENT"
    scenario = "SCENARIO"


class CompletionStatus(enum.StrEnum):
    completed = "COMPLETED"
    partial = "PARTIAL"
    abandoned = "ABANDONED"


class ProgressStatus(enum.StrEnum):
    not_started = "NOT_STARTED"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    mastered = "MASTERED"


class AgentType(enum.StrEnum):
    content_curator = "CONTENT_CURATOR"
    learning_strategist = "LEARNING_STRATEGIST"
    practice_coach = "PRACTICE_COACH"
    research_assistant = "RESEARCH_ASSISTANT"
    conversation_coach = "CONVERSATION_COACH"


class AgentSessionStatus(enum.StrEnum):
    active = "ACTIVE"
    completed = "COMPLETED"
    failed = "FAILED"
    timeout = "TIMEOUT"


class ScenarioType(enum.StrEnum):
    decision_making = "DECISION_MAKING"
    case_study = "CASE_STUDY"
    simulation = "SIMULATION"
    interview_prep = "INTERVIEW_PREP"
    problem_solving = "PROBLEM_SOLVING"


class CompanySize(enum.StrEnum):
    startup = "STARTUP"
    small = "SMALL"
    medium = "MEDIUM"
    large = "LARGE"
    enterprise = "ENTERPRISE"


class RoleLevel(enum.StrEnum):
    junior = "JUNIOR"
    mid = "MID"
    senior = "SENIOR"
    lead = "LEAD"
    executive = "EXECUTIVE"


class ScenarioCreator(enum.StrEnum):
    practice_coach_agent = "PRACTICE_COACH_AGENT"
    manual = "MANUAL"
    imported = "IMPORTED"


def default_preferences() -> dict[str, Any]:
    return {
        "daily_time_goal": 30,
        "difficulty": "medium",
        "topics": [],
        "reminder_time": "09:00",
    }


def _default_sample_responses() -> dict[str, list[str]]:
    return {"excellent": [], "good": [], "needs_improvement": []}


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _fk(target: str, *, nullable: bool = False) -> Any:
    return mapped_column(
        SAUuid(as_uuid=True), ForeignKey(target), nullable=nullable, index=True
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = _uuid_pk()
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), nullable=False, default=UserRole.other)
    experience: Mapped[Experience] = mapped_column(
        _enum(Experience), nullable=False, default=Experience.beginner
    )
    learning_goals: Mapped[str | None] = mapped_column(Text, nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=default_preferences
    )
    last_active: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValidationError(f"{key} is not a valid email address")
        return value


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[uuid.UUID] = _uuid_pk()
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True, index=True)
    category: Mapped[TopicCategory] = mapped_column(
        _enum(TopicCategory), nullable=False, index=True
    )
    difficulty: Mapped[Experience] = mapped_column(
        _enum(Experience), nullable=False, default=Experience.beginner
    )
    estimated_time_minutes: Mapped[int] = mapped_column(nullable=False, default=15)
    definition: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    why_it_matters: Mapped[str] = mapped_column(Text, nullable=False, default="")
    real_world_example: Mapped[str] = mapped_column(Text, nullable=False, default="")
    prerequisites: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    source_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    source_type: Mapped[SourceType] = mapped_column(
        _enum(SourceType), nullable=False, default=SourceType.manual
    )
    version: Mapped[int] = mapped_column(nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("estimated_time_minutes > 0", name="ck_topics_estimated_time"),
    )

    @validates("estimated_time_minutes")
    def _validate_time(self, key: str, value: int) -> int:
        if value is not None and value <= 0:
            raise ValidationError(f"{key} must be positive, got {value}")
        return value


class LearningPath(Base):
    __tablename__ = "learning_paths"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _fk("users.id")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[PathType] = mapped_column(
        _enum(PathType), nullable=False, default=PathType.personalized
    )
    target_role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    target_skill: Mapped[str | None] = mapped_column(String(100), nullable=True)
    estimated_days: Mapped[int] = mapped_column(nullable=False, default=30)
    difficulty: Mapped[Experience] = mapped_column(
        _enum(Experience), nullable=False, default=Experience.beginner
    )
    status: Mapped[PathStatus] = mapped_column(
        _enum(PathStatus), nullable=False, default=PathStatus.active, index=True
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    topics: Mapped[list[LearningPathTopic]] = relationship(
        back_populates="learning_path",
        order_by="LearningPathTopic.sequence_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 1", name="ck_learning_paths_progress"),
    )

    @validates("progress")
    def _validate_progress(self, key: str, value: float) -> float:
        return _check_range(key, value, 0.0, 1.0)


class LearningPathTopic(Base):
    __tablename__ = "learning_path_topics"

    id: Mapped[uuid.UUID] = _uuid_pk()
    learning_path_id: Mapped[uuid.UUID] = _fk("learning_paths.id")
    topic_id: Mapped[uuid.UUID] = _fk("topics.id")
    sequence_order: Mapped[int] = mapped_column(nullable=False)
    is_required: Mapped[bool] = mapped_column(nullable=False, default=True)
    is_completed: Mapped[bool] = mapped_column(nullable=False, default=False)
    target_mastery_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    estimated_time_minutes: Mapped[int | None] = mapped_column(nullable=True)
    actual_time_minutes: Mapped[int | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    learning_path: Mapped[LearningPath] = relationship(back_populates="topics")
    topic: Mapped[Topic] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("learning_path_id", "topic_id", name="uq_learning_path_topic"),
        CheckConstraint(
            "target_mastery_score >= 0 AND target_mastery_score <= 1",
            name="ck_learning_path_topics_mastery",
        ),
    )

    @validates("target_mastery_score")
    def _validate_mastery(self, key: str, value: float) -> float:
        return _check_range(key, value, 0.0, 1.0)


class LearningSession(Base):
    __tablename__ = "learning_sessions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _fk("users.id")
    topic_id: Mapped[uuid.UUID] = _fk("topics.id")
    learning_path_id: Mapped[uuid.UUID | None] = _fk("learning_paths.id", nullable=True)
    session_type: Mapped[SessionType] = mapped_column(_enum(SessionType), nullable=False)
    start_time: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(nullable=True)
    confidence_before: Mapped[int | None] = mapped_column(nullable=True)
    confidence_after: Mapped[int | None] = mapped_column(nullable=True)
    completion_status: Mapped[CompletionStatus] = mapped_column(
        _enum(CompletionStatus), nullable=False, default=CompletionStatus.partial
    )
    interaction_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    feedback: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)

    __table_args__ = (
        CheckConstraint(
            "confidence_before IS NULL OR (confidence_before >= 1 AND confidence_before <= 10)",
            name="ck_learning_sessions_confidence_before",
        ),
        CheckConstraint(
            "confidence_after IS NULL OR (confidence_after >= 1 AND confidence_after <= 10)",
            name="ck_learning_sessions_confidence_after",
        ),
        Index("ix_learning_sessions_user_start", "user_id", "start_time"),
    )

    @validates("confidence_before", "confidence_after")
    def _validate_confidence(self, key: str, value: int | None) -> int | None:
        return _check_range(key, value, 1, 10)


class UserProgress(Base):
    __tablename__ = "user_progress"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _fk("users.id")
    topic_id: Mapped[uuid.UUID] = _fk("topics.id")
    status: Mapped[ProgressStatus] = mapped_column(
        _enum(ProgressStatus), nullable=False, default=ProgressStatus.not_started
    )
    confidence_level: Mapped[int] = mapped_column(nullable=False, default=1)
    mastery_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    time_spent_minutes: Mapped[int] = mapped_column(nullable=False, default=0)
    first_studied_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_studied_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    study_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    review_count: Mapped[int] = mapped_column(nullable=False, default=0)
    next_review_date: Mapped[datetime | None] = mapped_column(nullable=True)
    learning_velocity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    difficulty_rating: Mapped[int | None] = mapped_column(nullable=True)
    personal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    practice_attempts: Mapped[int] = mapped_column(nullable=False, default=0)
    successful_practices: Mapped[int] = mapped_column(nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    topic: Mapped[Topic] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_user_progress_user_topic"),
        CheckConstraint(
            "confidence_level >= 1 AND confidence_level <= 10",
            name="ck_user_progress_confidence",
        ),
        CheckConstraint(
            "mastery_score >= 0 AND mastery_score <= 1", name="ck_user_progress_mastery"
        ),
        CheckConstraint(
            "difficulty_rating IS NULL OR (difficulty_rating >= 1 AND difficulty_rating <= 5)",
            name="ck_user_progress_difficulty",
        ),
    )

    @validates("confidence_level")
    def _validate_confidence(self, key: str, value: int) -> int:
        return _check_range(key, value, 1, 10)

    @validates("mastery_score")
    def _validate_mastery(self, key: str, value: float) -> float:
        return _check_range(key, value, 0.0, 1.0)

    @validates("difficulty_rating")
    def _validate_difficulty(self, key: str, value: int | None) -> int | None:
        return _check_range(key, value, 1, 5)


class AgentSession(Base):
    __tablename__ = "agent_sessions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _fk("users.id")
    agent_type: Mapped[AgentType] = mapped_column(_enum(AgentType), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    context: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    messages: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[AgentSessionStatus] = mapped_column(
        _enum(AgentSessionStatus), nullable=False, default=AgentSessionStatus.active, index=True
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(nullable=True)
    execution_time_ms: Mapped[int | None] = mapped_column(nullable=True)
    tokens_used: Mapped[int] = mapped_column(nullable=False, default=0)
    cost: Mapped[float] = mapped_column(Numeric(10, 6, asdecimal=False), nullable=False, default=0)
    result_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (Index("ix_agent_sessions_user_start", "user_id", "start_time"),)


class PracticeScenario(Base):
    __tablename__ = "practice_scenarios"

    id: Mapped[uuid.UUID] = _uuid_pk()
    topic_id: Mapped[uuid.UUID] = _fk("topics.id")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    scenario_type: Mapped[ScenarioType] = mapped_column(_enum(ScenarioType), nullable=False)
    difficulty: Mapped[Experience] = mapped_column(
        _enum(Experience), nullable=False, default=Experience.beginner
    )
    estimated_time_minutes: Mapped[int] = mapped_column(nullable=False, default=15)
    context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    situation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    challenge: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expected_outcomes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    evaluation_criteria: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    hints: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    sample_responses: Mapped[dict[str, list[str]]] = mapped_column(
        JSON, nullable=False, default=_default_sample_responses
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company_size: Mapped[CompanySize | None] = mapped_column(_enum(CompanySize), nullable=True)
    role_level: Mapped[RoleLevel | None] = mapped_column(_enum(RoleLevel), nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    created_by: Mapped[ScenarioCreator] = mapped_column(
        _enum(ScenarioCreator), nullable=False, default=ScenarioCreator.practice_coach_agent
    )
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


# --- Module Notes -----------------------------------------------------------
# `meta` attributes map to columns literally named "metadata"; the attribute name
# `metadata` is reserved by SQLAlchemy's declarative base.
