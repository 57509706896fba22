"""
synapse_learning.agents.learning_strategist

Learning Strategist agent: builds personalized learning paths.

Responsibilities:
- Summarize what a learner already knows (strong / emerging / gap categories).
- Ask the model for an ordered path over existing topics and persist it.
- Analyze learning gaps and recommend next topics.
- Adapt an existing path to the learner's progress on its topics.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Any

from synapse_learning.agents.base import BaseAgent, as_str_list, coerce_enum
from synapse_learning.db.base import utcnow
from synapse_learning.db.models import (
    AgentType,
    Experience,
    LearningPath,
    PathType,
    ProgressStatus,
    Topic,
    TopicCategory,
    User,
    UserProgress,
)
from synapse_learning.db.repositories.learning_paths import LearningPathRepo
from synapse_learning.db.repositories.progress import ProgressRepo
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.db.repositories.users import UserRepo
from synapse_learning.errors import BadRequest, NotFound
from synapse_learning.schemas import LearningPathOut

DEFAULT_TIMEFRAME_DAYS = 30
ADAPTATION_TYPES = ("SEQUENCE", "DIFFICULTY", "CONTENT", "PACE")
STRUGGLING_CONFIDENCE = 4
STRONG_CONFIDENCE = 8


def path_fallback(target_role: str, timeframe: int) -> dict[str, Any]:
    return {
        "title": f"AI Learning Path for {target_role}",
        "description": "A comprehensive learning journey tailored to your role",
        "estimated_days": timeframe,
        "topics": ["AI Fundamentals", "Business Applications", "Implementation Strategies"],
    }


def analyze_knowledge(completed: list[Topic]) -> dict[str, Any]:
    counts = Counter(t.category.value for t in completed)
    return {
        "total_completed": len(completed),
        "strong_areas": sorted(c for c, n in counts.items() if n >= 3),
        "emerging_areas": sorted(c for c, n in counts.items() if 0 < n < 3),
        "knowledge_gaps": sorted(c.value for c in TopicCategory if counts[c.value] == 0),
    }


def analyze_path_progress(
    path: LearningPath, progress: dict[uuid.UUID, UserProgress]
) -> dict[str, Any]:
    statuses: list[dict[str, Any]] = []
    struggling: list[str] = []
    strong: list[str] = []
    for link in path.topics:
        title = link.topic.title if link.topic is not None else str(link.topic_id)
        row = progress.get(link.topic_id)
        status = row.status if row is not None else ProgressStatus.not_started
        confidence = row.confidence_level if row is not None else 1
        statuses.append({"title": title, "status": status.value, "confidence": confidence})
        if row is None:
            continue
        if row.mastery_score >= link.target_mastery_score or confidence >= STRONG_CONFIDENCE:
            strong.append(title)
        elif status == ProgressStatus.in_progress and confidence <= STRUGGLING_CONFIDENCE:
            struggling.append(title)

    done = sum(1 for s in statuses if s["status"] in ("COMPLETED", "MASTERED"))
    return {
        "topic_statuses": statuses,
        "struggling_areas": struggling,
        "strong_areas": strong,
        "summary": f"{done} of {len(statuses)} topics completed",
    }


class LearningStrategistAgent(BaseAgent):
    agent_type = AgentType.learning_strategist
    description = "Designs personalized, role-aware learning paths."
    capability_list = (
        "Create personalized learning roadmaps",
        "Sequence topics by prerequisites",
        "Identify learning gaps",
        "Recommend next topics",
    )
    task_handlers = {
        "GENERATE_LEARNING_PATH": "_task_generate_path",
        "ANALYZE_LEARNING_GAPS": "_task_analyze_gaps",
        "RECOMMEND_NEXT_TOPICS": "_task_recommend_next",
        "ADAPT_LEARNING_PATH": "_task_adapt_path",
    }
    chat_temperature = 0.6
    chat_max_tokens = 600
    chat_confidence = 0.9

    system_prompt = (
        "You are a Learning Strategist Agent for personalized AI education. You analyze "
        "what a learner has completed, consider their role, industry and available time, "
        "and sequence 4-8 topics so fundamentals come before advanced material and theory "
        "is mixed with practical application."
    )

    async def generate_path(
        self,
        *,
        user: User,
        target_role: str | None = None,
        timeframe: int | None = None,
    ) -> dict[str, Any]:
        role = target_role or user.role.value
        days = timeframe or DEFAULT_TIMEFRAME_DAYS

        completed, available = await self._topics_for(user.id)
        analysis = analyze_knowledge(completed)

        catalogue = "\n".join(
            f"- {t.id}: {t.title} ({t.category.value}, {t.difficulty.value})" for t in available
        )
        prompt = (
            f"Create a {days}-day learning path for a {user.experience.value} learner "
            f"targeting the role '{role}' (industry: {user.industry or 'General'}).\n"
            f"Learning goals: {user.learning_goals or 'not specified'}\n"
            f"Strong areas: {', '.join(analysis['strong_areas']) or 'none'}\n"
            f"Knowledge gaps: {', '.join(analysis['knowledge_gaps']) or 'none'}\n\n"
            f"Available topics (id: title):\n{catalogue or '- none yet'}\n\n"
            "Respond with a JSON object with: title, description, type (PERSONALIZED, "
            "ROLE_BASED, SKILL_BASED or INDUSTRY_SPECIFIC), difficulty, estimated_days, "
            "topic_ids (ordered array of ids from the list), reasoning, milestones (array)."
        )
        plan = await self.extract_json(
            prompt, path_fallback(role, days), temperature=0.6, max_tokens=800
        )

        repo = LearningPathRepo(self._session)
        try:
            estimated_days = int(plan.get("estimated_days") or days)
        except (TypeError, ValueError):
            estimated_days = days
        path = await repo.create(
            user_id=user.id,
            title=str(plan.get("title") or path_fallback(role, days)["title"])[:200],
            description=plan.get("description"),
            type=coerce_enum(PathType, plan.get("type"), PathType.personalized),
            difficulty=coerce_enum(Experience, plan.get("difficulty"), user.experience),
            estimated_days=estimated_days,
            target_role=role,
            meta={
                "reasoning": plan.get("reasoning"),
                "milestones": as_str_list(plan.get("milestones")),
                "knowledge_analysis": analysis,
                "generated_by": self.agent_type.value,
                "adaptation_count": 0,
            },
        )

        topic_ids = await self._resolve_topic_ids(plan, available)
        linked: list[dict[str, Any]] = []
        by_id = {t.id: t for t in available}
        for order, topic_id in enumerate(topic_ids, start=1):
            await repo.add_topic(
                learning_path_id=path.id, topic_id=topic_id, sequence_order=order
            )
            topic = by_id.get(topic_id)
            linked.append(
                {
                    "topic_id": str(topic_id),
                    "title": topic.title if topic else None,
                    "sequence_order": order,
                    "is_required": True,
                    "target_mastery_score": 0.8,
                }
            )

        self.log.info("learning_path_created", path_id=str(path.id), topics=len(linked))
        return {
            "learning_path": LearningPathOut.model_validate(path).dump(),
            "topics": linked,
            "knowledge_analysis": analysis,
        }

    async def _topics_for(self, user_id: uuid.UUID) -> tuple[list[Topic], list[Topic]]:
        topics = TopicRepo(self._session)
        completed_ids = set(await ProgressRepo(self._session).completed_topic_ids(user_id))
        active = await topics.list_active(limit=50)
        completed = [t for t in active if t.id in completed_ids]
        available = [t for t in active if t.id not in completed_ids]
        return completed, available

    async def _resolve_topic_ids(
        self, plan: dict[str, Any], available: list[Topic]
    ) -> list[uuid.UUID]:
        wanted: list[uuid.UUID] = []
        for raw in plan.get("topic_ids") or []:
            try:
                wanted.append(uuid.UUID(str(raw)))
            except ValueError:
                continue

        # Title references (as in the fallback plan) resolve against the catalogue.
        by_title = {t.title.lower(): t.id for t in available}
        for title in plan.get("topics") or []:
            if isinstance(title, str) and title.lower() in by_title:
                wanted.append(by_title[title.lower()])

        existing = await TopicRepo(self._session).existing_ids(wanted)
        seen: set[uuid.UUID] = set()
        ordered: list[uuid.UUID] = []
        for topic_id in wanted:
            if topic_id in existing and topic_id not in seen:
                seen.add(topic_id)
                ordered.append(topic_id)
        return ordered

    async def _load_user(self, data: dict[str, Any]) -> User:
        user = await UserRepo(self._session).get(uuid.UUID(str(data.get("user_id"))))
        if user is None:
            raise NotFound("User not found")
        return user

    async def _task_generate_path(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self._load_user(data)
        return await self.generate_path(
            user=user,
            target_role=data.get("target_role"),
            timeframe=data.get("timeframe"),
        )

    async def _task_analyze_gaps(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self._load_user(data)
        completed, _ = await self._topics_for(user.id)
        analysis = analyze_knowledge(completed)
        prompt = (
            f"A {user.experience.value} {user.role.value} has completed "
            f"{analysis['total_completed']} topics. Strong areas: "
            f"{', '.join(analysis['strong_areas']) or 'none'}. Gaps: "
            f"{', '.join(analysis['knowledge_gaps']) or 'none'}.\n"
            "Respond with a JSON object with: priority_gaps (array), rationale, "
            "suggested_focus (array)."
        )
        advice = await self.extract_json(
            prompt,
            {
                "priority_gaps": analysis["knowledge_gaps"][:3],
                "rationale": "Start with the categories you have not explored yet.",
                "suggested_focus": [],
            },
        )
        return {"knowledge_analysis": analysis, "advice": advice}

    async def _task_recommend_next(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self._load_user(data)
        limit = int(data.get("limit", 5))
        _, available = await self._topics_for(user.id)
        catalogue = "\n".join(f"- {t.id}: {t.title}" for t in available)
        prompt = (
            f"Recommend up to {limit} next topics for a {user.experience.value} "
            f"{user.role.value} from this list:\n{catalogue or '- none'}\n"
            "Respond with a JSON object with: topic_ids (array), reasoning."
        )
        picked = await self.extract_json(
            prompt, {"topic_ids": [str(t.id) for t in available[:limit]], "reasoning": ""}
        )
        ids = (await self._resolve_topic_ids(picked, available))[:limit]
        by_id = {t.id: t for t in available}
        return {
            "recommendations": [
                {"topic_id": str(i), "title": by_id[i].title} for i in ids if i in by_id
            ],
            "reasoning": picked.get("reasoning", ""),
        }

    async def _task_adapt_path(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self._load_user(data)
        try:
            path_id = uuid.UUID(str(data["path_id"]))
        except (KeyError, ValueError) as e:
            raise BadRequest("A valid path_id is required") from e
        path = await LearningPathRepo(self._session).get(path_id)
        if path is None or path.user_id != user.id:
            raise NotFound("Learning path not found")

        rows = await ProgressRepo(self._session).list_progress(user.id)
        analysis = analyze_path_progress(path, {p.topic_id: p for p in rows})
        topic_lines = "\n".join(
            f"- {t['title']}: {t['status']} (Confidence: {t['confidence']}/10)"
            for t in analysis["topic_statuses"]
        )
        prompt = (
            "Analyze this learning path and the learner's progress and recommend adaptations.\n"
            f"Current path: {path.title}\n"
            f"Progress: {round(path.progress * 100)}%\n"
            f"User role: {user.role.value}\n"
            f"User experience: {user.experience.value}\n\n"
            f"Topics status:\n{topic_lines or '- none'}\n\n"
            f"Struggling areas: {', '.join(analysis['struggling_areas']) or 'none'}\n"
            f"Strong areas: {', '.join(analysis['strong_areas']) or 'none'}\n\n"
            "Respond with a JSON object with: should_adapt (boolean), adaptation_type "
            f"(array drawn from {', '.join(ADAPTATION_TYPES)}), recommendations (array), "
            "new_topics (array), remove_topics (array), reasoning."
        )
        raw = await self.extract_json(
            prompt,
            {"should_adapt": False, "reasoning": "The current path still fits your progress."},
            context=[analysis["summary"]],
        )
        kinds = (str(k).upper() for k in as_str_list(raw.get("adaptation_type")))
        adaptation = {
            "should_adapt": raw.get("should_adapt") is True,
            "adaptation_type": [k for k in kinds if k in ADAPTATION_TYPES],
            "recommendations": as_str_list(raw.get("recommendations")),
            "new_topics": as_str_list(raw.get("new_topics")),
            "remove_topics": as_str_list(raw.get("remove_topics")),
            "reasoning": str(raw.get("reasoning") or ""),
        }

        # JSON columns only track reassignment, not in-place mutation.
        meta = dict(path.meta or {})
        meta["last_adaptation"] = {**adaptation, "analyzed_at": utcnow().isoformat()}
        if adaptation["should_adapt"]:
            meta["adaptation_count"] = int(meta.get("adaptation_count") or 0) + 1
            self.log.info(
                "learning_path_adapted", path_id=str(path.id), types=adaptation["adaptation_type"]
            )
        path.meta = meta
        await self._session.flush()

        return {
            "adaptation": adaptation,
            "progress_analysis": analysis,
            "learning_path": LearningPathOut.model_validate(path).dump(),
        }

    def suggestions(self, message: str) -> list[str]:
        return [
            "Generate a 30-day learning path",
            "Show which categories I have not covered yet",
            "Recommend my next three topics",
        ]

    def follow_up_questions(self, message: str) -> list[str]:
        return ["How much time can you study each day?", "Which role are you preparing for?"]
