"""
synapse_learning.db.repositories.scenarios

Repository for `PracticeScenario` entities.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from synapse_learning.db.models import PracticeScenario


class ScenarioRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> PracticeScenario:
        scenario = PracticeScenario(**fields)
        self._session.add(scenario)
        await self._session.flush()
        return scenario

    async def get(self, scenario_id: uuid.UUID) -> PracticeScenario | None:
        return await self._session.get(PracticeScenario, scenario_id)

    async def append_evaluation(
        self, scenario: PracticeScenario, evaluation: dict[str, Any]
    ) -> None:
        # Reassign so the JSON column is marked dirty.
        meta = dict(scenario.meta or {})
        meta["evaluations"] = [*meta.get("evaluations", []), evaluation]
        scenario.meta = meta
        await self._session.flush()
