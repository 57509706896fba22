"""
synapse_learning.services.orchestrator

Agent orchestration service (transaction + telemetry owner).

Responsibilities:
- Keep the agent registry and route requests by request type or chat keywords.
- Wrap every agent invocation in an `AgentSession` row: status, timing,
  token/cost counters, messages and result or error.
- Aggregate session statistics and describe agent capabilities.
"""

from __future__ import annotations

import enum
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.agents import (
    BaseAgent,
    ContentCuratorAgent,
    ConversationCoachAgent,
    LearningStrategistAgent,
    PracticeCoachAgent,
    ResearchAssistantAgent,
)
from synapse_learning.db.models import AgentSessionStatus, AgentType, User
from synapse_learning.db.repositories.agent_sessions import AgentSessionRepo
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.db.repositories.users import UserRepo
from synapse_learning.errors import (
    AgentError,
    BadRequest,
    NotFound,
    SynapseError,
    UnknownRequestType,
)
from synapse_learning.llm.client import LLMClient
from synapse_learning.observability.logging import get_logger
from synapse_learning.settings import Settings

log = get_logger(__name__)


class RequestType(enum.StrEnum):
    newsletter_processing = "NEWSLETTER_PROCESSING"
    learning_path_generation = "LEARNING_PATH_GENERATION"
    practice_scenario = "PRACTICE_SCENARIO"
    research_query = "RESEARCH_QUERY"
    chat = "CHAT"


# First match wins; order matters.
KEYWORD_ROUTES: tuple[tuple[tuple[str, ...], AgentType], ...] = (
    (("practice", "scenario", "exercise"), AgentType.practice_coach),
    (("research", "latest", "trends"), AgentType.research_assistant),
    (("path", "roadmap", "plan"), AgentType.learning_strategist),
    (("newsletter", "article", "content"), AgentType.content_curator),
)

DEFAULT_AGENTS: dict[AgentType, tuple[type[BaseAgent], str]] = {
    AgentType.content_curator: (ContentCuratorAgent, "content_curator_model"),
    AgentType.learning_strategist: (LearningStrategistAgent, "learning_strategist_model"),
    AgentType.practice_coach: (PracticeCoachAgent, "practice_coach_model"),
    AgentType.research_assistant: (ResearchAssistantAgent, "research_assistant_model"),
    AgentType.conversation_coach: (ConversationCoachAgent, "conversation_coach_model"),
}


def select_agent(message: str) -> AgentType:
    lowered = message.lower()
    for keywords, agent_type in KEYWORD_ROUTES:
        if any(k in lowered for k in keywords):
            return agent_type
    return AgentType.conversation_coach


class AgentOrchestrator:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        llm: LLMClient,
        register_defaults: bool = True,
    ) -> None:
        self._session = session
        self._settings = settings
        self._llm = llm

        self._agents: dict[AgentType, BaseAgent] = {}
        self._sessions = AgentSessionRepo(session)
        self._users = UserRepo(session)
        self._topics = TopicRepo(session)

        if register_defaults:
            for agent_type, (cls, model_setting) in DEFAULT_AGENTS.items():
                self.register_agent(
                    agent_type,
                    cls(
                        session=session,
                        llm=llm,
                        model=getattr(settings, model_setting),
                        max_retries=settings.llm_max_retries,
                    ),
                )

        self._handlers: dict[
            RequestType, Callable[[User, dict[str, Any]], Awaitable[dict[str, Any]]]
        ] = {
            RequestType.newsletter_processing: self._handle_newsletter,
            RequestType.learning_path_generation: self._handle_learning_path,
            RequestType.practice_scenario: self._handle_practice_scenario,
            RequestType.research_query: self._handle_research,
            RequestType.chat: self._handle_chat,
        }

    def register_agent(self, agent_type: AgentType, agent: BaseAgent) -> None:
        self._agents[agent_type] = agent

    def get_agent(self, agent_type: AgentType) -> BaseAgent:
        agent = self._agents.get(agent_type)
        if agent is None:
            raise AgentError(f"{agent_type.value} agent not available")
        return agent

    async def process_learning_request(
        self,
        *,
        user_id: uuid.UUID,
        request_type: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            rt = RequestType(request_type)
        except ValueError as e:
            raise UnknownRequestType(request_type) from e

        user = await self._require_user(user_id)
        return await self._handlers[rt](user, data)

    async def evaluate_scenario_response(
        self, *, user_id: uuid.UUID, scenario_id: uuid.UUID, response: str
    ) -> dict[str, Any]:
        user = await self._require_user(user_id)
        coach = self.get_agent(AgentType.practice_coach)
        return await self._run(
            user=user,
            agent=coach,
            context={"action": "EVALUATE_RESPONSE", "scenario_id": scenario_id},
            work=lambda: coach.evaluate_response(
                scenario_id=scenario_id, user_id=user.id, response=response
            ),
        )

    async def run_task(
        self,
        *,
        user_id: uuid.UUID,
        agent_type: AgentType,
        task_type: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        user = await self._require_user(user_id)
        agent = self.get_agent(agent_type)
        payload = {**data, "user_id": str(user.id)}
        return await self._run(
            user=user,
            agent=agent,
            context={"task_type": task_type, "data": payload},
            work=lambda: agent.process_task(task_type, payload),
        )

    # Request handlers -------------------------------------------------------

    async def _handle_newsletter(self, user: User, data: dict[str, Any]) -> dict[str, Any]:
        curator = self.get_agent(AgentType.content_curator)

        async def work() -> dict[str, Any]:
            topics = await curator.process_content(
                str(data.get("content") or ""), user_id=user.id, source=data.get("source")
            )
            return {"topics": topics, "count": len(topics)}

        return await self._run(
            user=user,
            agent=curator,
            context={
                "request_type": RequestType.newsletter_processing,
                "source": data.get("source"),
            },
            work=work,
        )

    async def _handle_learning_path(self, user: User, data: dict[str, Any]) -> dict[str, Any]:
        strategist = self.get_agent(AgentType.learning_strategist)
        return await self._run(
            user=user,
            agent=strategist,
            context={"request_type": RequestType.learning_path_generation, **data},
            work=lambda: strategist.generate_path(
                user=user,
                target_role=data.get("target_role"),
                timeframe=data.get("timeframe"),
            ),
        )

    async def _handle_practice_scenario(self, user: User, data: dict[str, Any]) -> dict[str, Any]:
        coach = self.get_agent(AgentType.practice_coach)
        return await self._run(
            user=user,
            agent=coach,
            context={"request_type": RequestType.practice_scenario, **data},
            work=lambda: coach.generate_scenario(
                topic_id=_topic_id(data),
                user=user,
                difficulty=data.get("difficulty"),
                scenario_type=data.get("scenario_type"),
            ),
        )

    async def _handle_research(self, user: User, data: dict[str, Any]) -> dict[str, Any]:
        researcher = self.get_agent(AgentType.research_assistant)
        return await self._run(
            user=user,
            agent=researcher,
            context={"request_type": RequestType.research_query, **data},
            work=lambda: researcher.conduct_research(
                query=str(data.get("query") or ""),
                topics=data.get("topics") or [],
                depth=data.get("depth") or "standard",
                user=user,
            ),
        )

    async def _handle_chat(self, user: User, data: dict[str, Any]) -> dict[str, Any]:
        message = str(data.get("message") or "")
        preferred = data.get("preferred_agent")
        try:
            agent_type = AgentType(preferred) if preferred else select_agent(message)
        except ValueError as e:
            raise BadRequest(f"Unknown agent type: {preferred}") from e
        agent = self.get_agent(agent_type)

        topic = None
        if data.get("topic_id"):
            topic = await self._topics.get(_topic_id(data))

        async def work() -> dict[str, Any]:
            reply = await agent.process_chat(
                message, user=user, topic=topic, context=data.get("context") or {}
            )
            reply["tokens_used"] = agent.tokens_used
            reply["cost"] = round(agent.cost, 6)
            return reply

        return await self._run(
            user=user,
            agent=agent,
            context={"request_type": RequestType.chat, **data},
            work=work,
        )

    # Telemetry --------------------------------------------------------------

    async def _require_user(self, user_id: uuid.UUID) -> User:
        user = await self._users.get(user_id)
        if user is None or not user.is_active:
            raise NotFound("User not found")
        return user

    async def _run(
        self,
        *,
        user: User,
        agent: BaseAgent,
        context: dict[str, Any],
        work: Callable[[], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        agent.reset_counters()
        row = await self._sessions.open(
            user_id=user.id,
            agent_type=agent.agent_type,
            context=to_jsonable_python(context),
        )
        row_id = row.id
        await self._session.commit()

        started = time.perf_counter()
        try:
            result = await work()
        except Exception as e:
            # Discard partial writes from the agent, then record the failure.
            await self._session.rollback()
            failed = await self._sessions.get(row_id)
            if failed is not None:
                await self._sessions.close(
                    failed,
                    status=AgentSessionStatus.failed,
                    execution_time_ms=_elapsed_ms(started),
                    tokens_used=agent.tokens_used,
                    cost=agent.cost,
                    messages=list(agent.messages),
                    error_message=e.message if isinstance(e, SynapseError) else str(e),
                )
                await self._session.commit()
            log.warning(
                "agent_session_failed",
                agent=agent.agent_type.value,
                session_id=str(row_id),
                error=str(e),
            )
            raise

        await self._sessions.close(
            row,
            status=AgentSessionStatus.completed,
            execution_time_ms=_elapsed_ms(started),
            tokens_used=agent.tokens_used,
            cost=agent.cost,
            messages=list(agent.messages),
            result_data=to_jsonable_python(result),
        )
        await self._session.commit()
        log.info(
            "agent_session_completed",
            agent=agent.agent_type.value,
            session_id=str(row_id),
            tokens=agent.tokens_used,
        )
        return result

    async def get_agent_statistics(self) -> dict[str, Any]:
        rows = await self._sessions.list_finished()
        by_agent: dict[str, dict[str, Any]] = {}
        for r in rows:
            s = by_agent.setdefault(
                r.agent_type.value,
                {"count": 0, "total_time_ms": 0, "tokens": 0, "cost": 0.0, "successes": 0},
            )
            s["count"] += 1
            s["total_time_ms"] += r.execution_time_ms or 0
            s["tokens"] += r.tokens_used or 0
            s["cost"] += float(r.cost or 0)
            if r.status == AgentSessionStatus.completed:
                s["successes"] += 1

        for s in by_agent.values():
            s["cost"] = round(s["cost"], 6)
            s["average_time_ms"] = round(s["total_time_ms"] / s["count"], 2)
            s["success_rate"] = round(s["successes"] / s["count"] * 100, 2)

        total = len(rows)
        successes = sum(s["successes"] for s in by_agent.values())
        total_time = sum(s["total_time_ms"] for s in by_agent.values())
        return {
            "total_sessions": total,
            "total_tokens": sum(s["tokens"] for s in by_agent.values()),
            "total_cost": round(sum(s["cost"] for s in by_agent.values()), 6),
            "average_execution_time_ms": round(total_time / total, 2) if total else 0.0,
            "success_rate": round(successes / total * 100, 2) if total else 0.0,
            "by_agent": by_agent,
        }

    def capabilities(self) -> dict[str, Any]:
        return {t.value: agent.capabilities() for t, agent in self._agents.items()}


def _topic_id(data: dict[str, Any]) -> uuid.UUID:
    try:
        return uuid.UUID(str(data["topic_id"]))
    except (KeyError, ValueError) as e:
        raise BadRequest("A valid topic_id is required") from e


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


# --- Module Notes -----------------------------------------------------------
# The ACTIVE session row is committed before the agent runs so a failure can roll
# back the agent's partial writes without losing the telemetry row.
