"""
synapse_learning.agents.base

Common agent machinery.

Responsibilities:
- Build the (system prompt + user message) pair and call the LLM client.
- Accumulate token/cost counters and the exchanged messages for session telemetry.
- Provide JSON extraction with hardcoded fallbacks and a generic retry helper.
- Dispatch named background tasks to agent methods.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.models import AgentType, Topic, User
from synapse_learning.errors import BadRequest, LLMError, LLMNotConfigured
from synapse_learning.llm.client import LLMClient, LLMResponse
from synapse_learning.llm.parsing import parse_json
from synapse_learning.observability.logging import get_logger

T = TypeVar("T")


class BaseAgent:
    agent_type: ClassVar[AgentType]
    system_prompt: ClassVar[str]
    description: ClassVar[str] = ""
    capability_list: ClassVar[tuple[str, ...]] = ()
    task_handlers: ClassVar[dict[str, str]] = {}

    chat_temperature: ClassVar[float] = 0.7
    chat_max_tokens: ClassVar[int] = 500
    chat_confidence: ClassVar[float] = 0.8

    def __init__(
        self,
        *,
        session: AsyncSession,
        llm: LLMClient,
        model: str,
        max_retries: int = 1,
    ) -> None:
        self._session = session
        self._llm = llm
        self.model = model
        self._max_retries = max_retries

        self.tokens_used = 0
        self.cost = 0.0
        self.messages: list[dict[str, str]] = []
        self.log = get_logger(__name__, agent=self.agent_type.value)

    def reset_counters(self) -> None:
        self.tokens_used = 0
        self.cost = 0.0
        self.messages = []

    async def generate_response(
        self,
        prompt: str,
        *,
        context: list[str] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        user_content = prompt
        if context:
            user_content = "Context:\n" + "\n".join(context) + "\n\n" + prompt

        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": user_content},
        ]

        async def _call() -> LLMResponse:
            return await self._llm.chat(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

        resp = await self.retry_with_backoff(_call, max_retries=self._max_retries)

        self.tokens_used += resp.tokens_used
        self.cost += resp.cost
        self.messages.append({"role": "user", "content": user_content})
        self.messages.append({"role": "assistant", "content": resp.content})
        self.log.info("llm_response", model=self.model, tokens=resp.tokens_used)
        return resp.content

    async def extract_json(
        self,
        prompt: str,
        fallback: Any = None,
        *,
        context: list[str] | None = None,
        temperature: float = 0.3,
        max_tokens: int = 1500,
    ) -> Any:
        content = await self.generate_response(
            prompt, context=context, temperature=temperature, max_tokens=max_tokens
        )
        return parse_json(content, fallback)

    async def retry_with_backoff(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except LLMNotConfigured:
                raise
            except LLMError as e:
                attempt += 1
                if attempt >= max_retries:
                    raise
                delay = base_delay * 2 ** (attempt - 1)
                self.log.warning("llm_retry", attempt=attempt, delay_s=delay, error=e.message)
                await asyncio.sleep(delay)

    # Chat -------------------------------------------------------------------

    def chat_context(
        self,
        *,
        user: User | None,
        topic: Topic | None,
        context: dict[str, Any] | None,
    ) -> list[str]:
        lines: list[str] = []
        if user is not None:
            lines.append(f"User role: {user.role.value}")
            lines.append(f"User experience: {user.experience.value}")
            lines.append(f"Industry: {user.industry or 'General'}")
        if topic is not None:
            lines.append(f"Current topic: {topic.title} ({topic.category.value})")
            lines.append(f"Definition: {topic.definition}")
        for msg in (context or {}).get("previous_messages", [])[-5:]:
            if isinstance(msg, dict) and msg.get("content"):
                lines.append(f"{msg.get('role', 'user')}: {msg['content']}")
        return lines

    def suggestions(self, message: str) -> list[str]:
        return []

    def follow_up_questions(self, message: str) -> list[str]:
        return []

    async def process_chat(
        self,
        message: str,
        *,
        user: User | None = None,
        topic: Topic | None = None,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self.generate_response(
            message,
            context=self.chat_context(user=user, topic=topic, context=context),
            temperature=self.chat_temperature,
            max_tokens=self.chat_max_tokens,
        )
        return {
            "response": response,
            "agent_type": self.agent_type.value,
            "confidence": self.chat_confidence,
            "suggestions": self.suggestions(message),
            "follow_up_questions": self.follow_up_questions(message),
        }

    # Tasks ------------------------------------------------------------------

    async def process_task(self, task_type: str, data: dict[str, Any]) -> dict[str, Any]:
        handler_name = self.task_handlers.get(task_type)
        if handler_name is None:
            raise BadRequest(f"Unknown task type for {self.agent_type.value}: {task_type}")
        handler = getattr(self, handler_name)
        return await handler(data)

    def capabilities(self) -> dict[str, Any]:
        return {
            "agent_type": self.agent_type.value,
            "model": self.model,
            "description": self.description,
            "capabilities": list(self.capability_list),
            "task_types": sorted(self.task_handlers),
        }


def coerce_enum(enum_cls: type[Any], value: Any, default: Any) -> Any:
    """Map loosely formatted model output ("business ai", "Intermediate") onto an enum."""

    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    wanted = value.strip().replace(" ", "_").replace("-", "_").lower()
    for member in enum_cls:
        if member.value.lower() == wanted or member.name == wanted:
            return member
    return default


def as_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    if isinstance(value, str) and value:
        return [value]
    return []


# --- Module Notes -----------------------------------------------------------
# Counters are per-instance; the orchestrator builds fresh agents per request and
# copies `tokens_used`/`cost`/`messages` onto the AgentSession row.
