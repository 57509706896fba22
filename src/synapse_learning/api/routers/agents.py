"""
synapse_learning.api.routers.agents

Agent endpoints.

Responsibilities:
- Translate HTTP requests into orchestrator request types.
- Enqueue background agent tasks.
- Expose session statistics and agent capabilities.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_202_ACCEPTED

from synapse_learning.api.deps import db_session, llm_client, settings_dep
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_principal
from synapse_learning.auth.models import Principal
from synapse_learning.db.models import AgentType
from synapse_learning.llm.client import LLMClient
from synapse_learning.services.orchestrator import AgentOrchestrator, RequestType
from synapse_learning.settings import Settings
from synapse_learning.tasks.agent_tasks import enqueue_agent_task

router = APIRouter(prefix="/api/agents", tags=["agents"])


class ProcessNewsletterRequest(BaseModel):
    content: str = Field(min_length=1)
    source: str | None = Field(default=None, max_length=2048)


class LearningPathRequest(BaseModel):
    target_role: str | None = Field(default=None, max_length=100)
    timeframe: int = Field(default=30, ge=1, le=365)


class PracticeScenarioRequest(BaseModel):
    topic_id: uuid.UUID
    difficulty: str | None = None
    scenario_type: str | None = None


class EvaluateResponseRequest(BaseModel):
    response: str = Field(min_length=1)


class ResearchRequest(BaseModel):
    query: str = Field(min_length=1)
    topics: list[str] = Field(default_factory=list)
    depth: str = "standard"


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    topic_id: uuid.UUID | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    preferred_agent: AgentType | None = None


class TaskRequest(BaseModel):
    agent_type: str
    task_type: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    priority: str = "MEDIUM"


def orchestrator_dep(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    llm: LLMClient = Depends(llm_client),
) -> AgentOrchestrator:
    return AgentOrchestrator(session=session, settings=settings, llm=llm)


async def _process(
    orchestrator: AgentOrchestrator,
    principal: Principal,
    request_type: RequestType,
    body: BaseModel,
) -> dict[str, Any]:
    result = await orchestrator.process_learning_request(
        user_id=principal.user_id,
        request_type=request_type,
        data=body.model_dump(mode="json", exclude_none=True),
    )
    return ok(result)


@router.post("/process-newsletter")
async def process_newsletter(
    body: ProcessNewsletterRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return await _process(orchestrator, principal, RequestType.newsletter_processing, body)


@router.post("/generate-learning-path")
async def generate_learning_path(
    body: LearningPathRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return await _process(orchestrator, principal, RequestType.learning_path_generation, body)


@router.post("/generate-practice-scenario")
async def generate_practice_scenario(
    body: PracticeScenarioRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return await _process(orchestrator, principal, RequestType.practice_scenario, body)


@router.post("/practice-scenarios/{scenario_id}/evaluate")
async def evaluate_practice_response(
    scenario_id: uuid.UUID,
    body: EvaluateResponseRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    result = await orchestrator.evaluate_scenario_response(
        user_id=principal.user_id, scenario_id=scenario_id, response=body.response
    )
    return ok(result)


@router.post("/conduct-research")
async def conduct_research(
    body: ResearchRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return await _process(orchestrator, principal, RequestType.research_query, body)


@router.post("/chat")
async def chat(
    body: ChatRequest,
    principal: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return await _process(orchestrator, principal, RequestType.chat, body)


@router.post("/tasks", status_code=HTTP_202_ACCEPTED)
async def enqueue_task(
    body: TaskRequest,
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    message = enqueue_agent_task(
        agent_type=body.agent_type,
        user_id=principal.user_id,
        task_type=body.task_type,
        data=body.data,
        priority=body.priority,
    )
    return ok(
        {
            "message_id": message.message_id,
            "queue": message.queue_name,
            "agent_type": body.agent_type,
            "task_type": body.task_type,
            "priority": body.priority,
        }
    )


@router.get("/stats")
async def agent_stats(
    _: Principal = Depends(get_principal),
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return ok(await orchestrator.get_agent_statistics())


@router.get("/capabilities")
async def agent_capabilities(
    orchestrator: AgentOrchestrator = Depends(orchestrator_dep),
) -> dict[str, Any]:
    return ok(orchestrator.capabilities())
