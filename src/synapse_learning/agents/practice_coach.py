"""
synapse_learning.agents.practice_coach

Practice Coach agent: generates and evaluates workplace practice scenarios.

Responsibilities:
- Pick a scenario type suited to the learner's role and persist a `PracticeScenario`.
- Evaluate learner responses and keep the evaluation history in scenario metadata.
- Produce case studies and interview prep on request.
"""

from __future__ import annotations

import random
import uuid
from typing import Any

from synapse_learning.agents.base import BaseAgent, as_str_list, coerce_enum
from synapse_learning.db.base import utcnow
from synapse_learning.db.models import (
    AgentType,
    Experience,
    RoleLevel,
    ScenarioCreator,
    ScenarioType,
    User,
    UserRole,
)
from synapse_learning.db.repositories.scenarios import ScenarioRepo
from synapse_learning.db.repositories.topics import TopicRepo
from synapse_learning.db.repositories.users import UserRepo
from synapse_learning.errors import BadRequest, NotFound
from synapse_learning.schemas import ScenarioOut

ROLE_SCENARIO_TYPES: dict[UserRole, tuple[ScenarioType, ...]] = {
    UserRole.pm: (ScenarioType.decision_making, ScenarioType.simulation, ScenarioType.case_study),
    UserRole.designer: (
        ScenarioType.problem_solving,
        ScenarioType.case_study,
        ScenarioType.simulation,
    ),
    UserRole.executive: (
        ScenarioType.decision_making,
        ScenarioType.case_study,
        ScenarioType.interview_prep,
    ),
    UserRole.developer: (
        ScenarioType.problem_solving,
        ScenarioType.case_study,
        ScenarioType.simulation,
    ),
}
DEFAULT_SCENARIO_TYPES = (ScenarioType.decision_making, ScenarioType.case_study)

EXPERIENCE_ROLE_LEVEL: dict[Experience, RoleLevel] = {
    Experience.beginner: RoleLevel.junior,
    Experience.intermediate: RoleLevel.mid,
    Experience.advanced: RoleLevel.senior,
}

EVALUATION_FALLBACK: dict[str, Any] = {
    "score": 5,
    "strengths": [],
    "improvements": [],
    "feedback": "Thanks for your response. Review the evaluation criteria and try again.",
    "next_steps": [],
    "category": "good",
}


def select_scenario_type(role: UserRole, rng: random.Random | None = None) -> ScenarioType:
    options = ROLE_SCENARIO_TYPES.get(role, DEFAULT_SCENARIO_TYPES)
    return (rng or random).choice(options)


class PracticeCoachAgent(BaseAgent):
    agent_type = AgentType.practice_coach
    description = "Creates realistic AI practice scenarios and gives feedback."
    capability_list = (
        "Generate role-specific workplace scenarios",
        "Evaluate responses against criteria",
        "Create case studies",
        "Prepare for AI interviews",
    )
    task_handlers = {
        "GENERATE_SCENARIO": "_task_generate_scenario",
        "EVALUATE_RESPONSE": "_task_evaluate_response",
        "CREATE_CASE_STUDY": "_task_case_study",
        "GENERATE_INTERVIEW_PREP": "_task_interview_prep",
    }
    chat_temperature = 0.7
    chat_max_tokens = 600
    chat_confidence = 0.85

    system_prompt = (
        "You are a Practice Coach Agent. You create realistic workplace scenarios where "
        "professionals apply AI concepts: decision-making exercises, case studies of real "
        "implementations, stakeholder simulations, interview preparation and problem solving. "
        "Scenarios include a concrete company context, constraints, evaluation criteria and "
        "hints. When reviewing answers, give specific and constructive feedback."
    )

    async def generate_scenario(
        self,
        *,
        topic_id: uuid.UUID,
        user: User,
        difficulty: str | None = None,
        scenario_type: str | None = None,
    ) -> dict[str, Any]:
        topic = await TopicRepo(self._session).get(topic_id)
        if topic is None:
            raise NotFound("Topic not found")

        kind = coerce_enum(ScenarioType, scenario_type, None) or select_scenario_type(user.role)
        level = coerce_enum(Experience, difficulty, user.experience)
        prompt = (
            f"Create a {kind.value} practice scenario about '{topic.title}' "
            f"({topic.definition}) for a {level.value} {user.role.value} "
            f"in the {user.industry or 'technology'} industry.\n"
            "Respond with a JSON object with: title, description, context, situation, "
            "challenge, expected_outcomes (array), evaluation_criteria (array), hints (array), "
            "estimated_time_minutes, stakeholders (array), constraints (array), "
            "success_metrics (array), real_world_example."
        )
        fallback = {
            "title": f"{topic.title} in Practice",
            "description": f"Apply {topic.title} to a realistic workplace decision.",
            "context": f"Your team is evaluating how {topic.title} could improve a product.",
            "situation": "Leadership has asked for a recommendation by the end of the week.",
            "challenge": "Propose an approach, its risks, and how you would measure success.",
            "expected_outcomes": ["A clear recommendation", "Identified risks"],
            "evaluation_criteria": ["Clarity", "Business impact", "Feasibility"],
            "hints": [f"Start from the definition of {topic.title}."],
        }
        data = await self.extract_json(prompt, fallback, temperature=0.7, max_tokens=1000)

        try:
            minutes = int(data.get("estimated_time_minutes") or 20)
        except (TypeError, ValueError):
            minutes = 20
        scenario = await ScenarioRepo(self._session).create(
            topic_id=topic.id,
            title=str(data.get("title") or fallback["title"])[:200],
            description=str(data.get("description") or fallback["description"]),
            scenario_type=kind,
            difficulty=level,
            estimated_time_minutes=max(minutes, 1),
            context=str(data.get("context") or ""),
            situation=str(data.get("situation") or ""),
            challenge=str(data.get("challenge") or ""),
            expected_outcomes=as_str_list(data.get("expected_outcomes")),
            evaluation_criteria=as_str_list(data.get("evaluation_criteria")),
            hints=as_str_list(data.get("hints")),
            sample_responses={"excellent": [], "good": [], "needs_improvement": []},
            tags=[kind.value.lower(), user.role.value.lower()],
            industry=user.industry,
            role_level=EXPERIENCE_ROLE_LEVEL.get(user.experience, RoleLevel.mid),
            is_active=True,
            created_by=ScenarioCreator.practice_coach_agent,
            meta={
                "generated_for": str(user.id),
                "stakeholders": data.get("stakeholders"),
                "constraints": data.get("constraints"),
                "success_metrics": data.get("success_metrics"),
                "real_world_example": data.get("real_world_example"),
            },
        )
        return {"scenario": ScenarioOut.model_validate(scenario).dump()}

    async def evaluate_response(
        self, *, scenario_id: uuid.UUID, user_id: uuid.UUID, response: str
    ) -> dict[str, Any]:
        if not response or not response.strip():
            raise BadRequest("Response is required")
        repo = ScenarioRepo(self._session)
        scenario = await repo.get(scenario_id)
        if scenario is None:
            raise NotFound("Scenario not found")

        prompt = (
            f"Scenario: {scenario.title}\n"
            f"Context: {scenario.context}\n"
            f"Situation: {scenario.situation}\n"
            f"Challenge: {scenario.challenge}\n"
            f"Expected outcomes: {', '.join(scenario.expected_outcomes)}\n"
            f"Evaluation criteria: {', '.join(scenario.evaluation_criteria)}\n\n"
            f'User response: "{response}"\n\n'
            "Evaluate the response. Respond with a JSON object with: score (1-10), "
            "strengths (array), improvements (array), feedback, next_steps (array), "
            'category ("excellent", "good", "needs_improvement" or "poor"), reasoning.'
        )
        evaluation = await self.extract_json(prompt, EVALUATION_FALLBACK)
        await repo.append_evaluation(
            scenario,
            {
                "user_id": str(user_id),
                "response": response,
                "evaluation": evaluation,
                "timestamp": utcnow().isoformat(),
            },
        )
        return {
            "evaluation": evaluation,
            "scenario": {
                "id": str(scenario.id),
                "title": scenario.title,
                "difficulty": scenario.difficulty.value,
            },
        }

    async def _user(self, data: dict[str, Any]) -> User:
        user = await UserRepo(self._session).get(uuid.UUID(str(data.get("user_id"))))
        if user is None:
            raise NotFound("User not found")
        return user

    async def _task_generate_scenario(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.generate_scenario(
            topic_id=uuid.UUID(str(data.get("topic_id"))),
            user=await self._user(data),
            difficulty=data.get("difficulty"),
            scenario_type=data.get("scenario_type"),
        )

    async def _task_evaluate_response(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.evaluate_response(
            scenario_id=uuid.UUID(str(data.get("scenario_id"))),
            user_id=uuid.UUID(str(data.get("user_id"))),
            response=str(data.get("response", "")),
        )

    async def _task_case_study(self, data: dict[str, Any]) -> dict[str, Any]:
        topic = await TopicRepo(self._session).get(uuid.UUID(str(data.get("topic_id"))))
        if topic is None:
            raise NotFound("Topic not found")
        prompt = (
            f"Write a case study of a {str(data.get('company_size') or 'MEDIUM').lower()} "
            f"company in {data.get('industry') or 'technology'} adopting {topic.title}.\n"
            "Respond with a JSON object with: company, background, implementation, "
            "results, lessons_learned (array), discussion_questions (array)."
        )
        return {"case_study": await self.extract_json(prompt, {}, temperature=0.7)}

    async def _task_interview_prep(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self._user(data)
        focus = data.get("focus") or "AI product strategy"
        prompt = (
            f"Prepare a {user.role.value} for an interview about {focus}.\n"
            "Respond with a JSON object with: questions (array of objects with question, "
            "what_they_look_for, sample_answer), tips (array)."
        )
        return {"interview_prep": await self.extract_json(prompt, {"questions": [], "tips": []})}

    def suggestions(self, message: str) -> list[str]:
        lowered = message.lower()
        if "scenario" in lowered or "practice" in lowered:
            return [
                "Let me create a realistic workplace scenario for you",
                "How about a case study from your industry?",
                "Would you like to practice with a decision-making exercise?",
            ]
        return ["Try a practice scenario on your current topic", "Ask for interview prep"]

    def follow_up_questions(self, message: str) -> list[str]:
        return ["Which part of the scenario felt hardest?", "Want feedback on a draft answer?"]
