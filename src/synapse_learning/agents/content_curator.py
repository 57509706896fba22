"""
synapse_learning.agents.content_curator

Content Curator agent: turns newsletters/articles into structured learning topics.

Responsibilities:
- Extract 2-3 topics from raw content and persist them as `Topic` rows.
- Enhance or categorize existing content on request.
"""

from __future__ import annotations

import uuid
from typing import Any

from synapse_learning.agents.base import BaseAgent, as_str_list, coerce_enum
from synapse_learning.db.models import AgentType, Experience, SourceType, TopicCategory
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.errors import BadRequest, NotFound
from synapse_learning.schemas import TopicOut

_MAX_CONTENT_CHARS = 8000

TOPICS_FALLBACK: list[dict[str, Any]] = [
    {
        "title": "AI Content Analysis",
        "category": "AI_FUNDAMENTALS",
        "difficulty": "Intermediate",
        "definition": "The process of extracting meaningful insights from text using AI models.",
    }
]

CATEGORIZE_FALLBACK: dict[str, Any] = {
    "category": "AI_FUNDAMENTALS",
    "difficulty": "Beginner",
    "tags": [],
}


class ContentCuratorAgent(BaseAgent):
    agent_type = AgentType.content_curator
    description = "Extracts learning topics from newsletters and articles."
    capability_list = (
        "Extract key AI concepts from content",
        "Create structured learning topics",
        "Categorize content by difficulty and area",
        "Explain AI concepts for non-technical professionals",
    )
    task_handlers = {
        "EXTRACT_TOPICS": "_task_extract_topics",
        "ENHANCE_TOPIC": "_task_enhance_topic",
        "CATEGORIZE_CONTENT": "_task_categorize_content",
    }
    chat_temperature = 0.7
    chat_max_tokens = 500
    chat_confidence = 0.85

    system_prompt = (
        "You are a Content Curator Agent for AI and technology education. "
        "You extract key learning concepts from newsletters and articles, turn them into "
        "structured topics with clear definitions, and explain them in plain language "
        "for product managers, designers and executives. Always tie concepts to real "
        "business applications. Extract at most 2-3 concepts from any piece of content; "
        "each should be worth 10-15 minutes of study."
    )

    async def process_content(
        self,
        content: str,
        *,
        user_id: uuid.UUID | None = None,
        source: str | None = None,
    ) -> list[dict[str, Any]]:
        if not content or not content.strip():
            raise BadRequest("Content is required")

        categories = ", ".join(c.value for c in TopicCategory)
        prompt = (
            "Extract 2-3 key AI learning topics from the content below.\n"
            "Respond with a JSON array. Each item must have: title, category "
            f"(one of {categories}), difficulty (Beginner, Intermediate or Advanced), "
            "definition, explanation, why_it_matters, real_world_example, tags (array).\n\n"
            f"Content:\n{content[:_MAX_CONTENT_CHARS]}"
        )
        items = await self.extract_json(prompt, TOPICS_FALLBACK)
        items = [i for i in items if isinstance(i, dict) and i.get("title")][:3]
        if not items:
            items = [dict(TOPICS_FALLBACK[0])]

        repo = TopicRepo(self._session)
        source_url = source if source and source.startswith(("http://", "https://")) else None
        created: list[dict[str, Any]] = []
        for item in items:
            topic = await repo.create(
                title=str(item["title"])[:200],
                category=coerce_enum(
                    TopicCategory, item.get("category"), TopicCategory.ai_fundamentals
                ),
                difficulty=coerce_enum(Experience, item.get("difficulty"), Experience.beginner),
                definition=str(item.get("definition") or item["title"]),
                explanation=str(item.get("explanation") or ""),
                why_it_matters=str(item.get("why_it_matters") or ""),
                real_world_example=str(item.get("real_world_example") or ""),
                tags=as_str_list(item.get("tags")),
                source_type=SourceType.newsletter,
                source_url=source_url,
                meta={
                    "source": source,
                    "extracted_by": self.agent_type.value,
                    "extracted_for": str(user_id) if user_id else None,
                },
            )
            created.append(TopicOut.model_validate(topic).dump())

        self.log.info("topics_extracted", count=len(created))
        return created

    async def _task_extract_topics(self, data: dict[str, Any]) -> dict[str, Any]:
        user_id = data.get("user_id")
        topics = await self.process_content(
            str(data.get("content", "")),
            user_id=uuid.UUID(str(user_id)) if user_id else None,
            source=data.get("source"),
        )
        return {"topics": topics}

    async def _task_enhance_topic(self, data: dict[str, Any]) -> dict[str, Any]:
        topic = await TopicRepo(self._session).get(uuid.UUID(str(data.get("topic_id"))))
        if topic is None:
            raise NotFound("Topic not found")

        prompt = (
            f"Enhance the learning topic '{topic.title}'.\n"
            f"Definition: {topic.definition}\n"
            "Respond with a JSON object with: detailed_explanation, analogies (array), "
            "common_misconceptions (array), related_concepts (array), practical_exercises (array)."
        )
        enhancement = await self.extract_json(prompt, {})
        topic.meta = {**(topic.meta or {}), "enhancement": enhancement}
        await self._session.flush()
        return {"topic": TopicOut.model_validate(topic).dump(), "enhancement": enhancement}

    async def _task_categorize_content(self, data: dict[str, Any]) -> dict[str, Any]:
        content = str(data.get("content", ""))
        prompt = (
            "Categorize this content for an AI learning catalogue. Respond with a JSON object "
            "with: category, difficulty, tags (array).\n\n"
            f"Content:\n{content[:_MAX_CONTENT_CHARS]}"
        )
        result = await self.extract_json(prompt, CATEGORIZE_FALLBACK)
        return {
            "category": coerce_enum(
                TopicCategory, result.get("category"), TopicCategory.ai_fundamentals
            ).value,
            "difficulty": coerce_enum(
                Experience, result.get("difficulty"), Experience.beginner
            ).value,
            "tags": as_str_list(result.get("tags")),
        }

    def suggestions(self, message: str) -> list[str]:
        return [
            "Paste a newsletter to extract new topics",
            "Ask for a real-world example of this concept",
            "Ask why this concept matters for your role",
        ]

    def follow_up_questions(self, message: str) -> list[str]:
        return [
            "Would you like a simpler explanation?",
            "Should I relate this to your industry?",
        ]
