"""
synapse_learning.api.routers.progress

Learning activity endpoints: record sessions, read per-topic progress.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from synapse_learning.api.deps import db_session
from synapse_learning.api.errors import ok
from synapse_learning.auth.deps import get_principal
from synapse_learning.auth.models import Principal
from synapse_learning.db.models import CompletionStatus, SessionType
from synapse_learning.services.progress_service import ProgressService

router = APIRouter(prefix="/api/progress", tags=["progress"])


class RecordSessionRequest(BaseModel):
    topic_id: uuid.UUID
    session_type: SessionType = SessionType.reading
    duration_minutes: int | None = Field(default=None, ge=0)
    # Range is enforced by the ORM so the error matches other writers.
    confidence_before: int | None = None
    confidence_after: int | None = None
    completion_status: CompletionStatus = CompletionStatus.partial
    learning_path_id: uuid.UUID | None = None
    notes: str | None = None


@router.post("/sessions", status_code=HTTP_201_CREATED)
async def record_session(
    body: RecordSessionRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    result = await ProgressService(session=session).record_session(
        user_id=principal.user_id, **body.model_dump()
    )
    return ok(result)


@router.get("")
async def list_progress(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return ok(await ProgressService(session=session).list_progress(principal.user_id))
