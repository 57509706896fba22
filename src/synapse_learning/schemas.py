"""
synapse_learning.schemas

Pydantic read models shared by agents (result payloads) and routers (responses).

Responsibilities:
- Serialize ORM rows into JSON-safe dicts with stable snake_case keys.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class UserOut(_ORMModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: str
    experience: str
    learning_goals: str | None = None
    industry: str | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)
    last_active: datetime | None = None
    is_active: bool = True


class TopicOut(_ORMModel):
    id: uuid.UUID
    title: str
    slug: str
    category: str
    difficulty: str
    estimated_time_minutes: int
    definition: str
    explanation: str
    why_it_matters: str
    real_world_example: str
    prerequisites: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    source_url: str | None = None
    source_type: str
    created_at: datetime | None = None


class PathTopicOut(_ORMModel):
    topic_id: uuid.UUID
    sequence_order: int
    is_required: bool
    is_completed: bool
    target_mastery_score: float
    topic: TopicOut | None = None


class LearningPathOut(_ORMModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None = None
    type: str
    target_role: str | None = None
    estimated_days: int
    difficulty: str
    status: str
    progress: float
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime | None = None


class LearningPathDetailOut(LearningPathOut):
    topics: list[PathTopicOut] = Field(default_factory=list)


class ScenarioOut(_ORMModel):
    id: uuid.UUID
    topic_id: uuid.UUID
    title: str
    description: str
    scenario_type: str
    difficulty: str
    estimated_time_minutes: int
    context: str
    situation: str
    challenge: str
    expected_outcomes: list[str] = Field(default_factory=list)
    evaluation_criteria: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    industry: str | None = None
    role_level: str | None = None
    created_by: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")


class SessionOut(_ORMModel):
    id: uuid.UUID
    topic_id: uuid.UUID
    learning_path_id: uuid.UUID | None = None
    session_type: str
    start_time: datetime
    end_time: datetime | None = None
    duration_minutes: int | None = None
    confidence_before: int | None = None
    confidence_after: int | None = None
    completion_status: str


class ProgressOut(_ORMModel):
    id: uuid.UUID
    topic_id: uuid.UUID
    status: str
    confidence_level: int
    mastery_score: float
    time_spent_minutes: int
    review_count: int
    practice_attempts: int
    successful_practices: int
    first_studied_at: datetime | None = None
    last_studied_at: datetime | None = None
    completed_at: datetime | None = None
