"""
synapse_learning.agents.research_assistant

Research Assistant agent: answers research questions and summarizes AI trends.

Responsibilities:
- Run a single-call research analysis and return findings, trends and next steps.
- Produce trend, competitive and market analyses for background tasks.
"""

from __future__ import annotations

from typing import Any

from synapse_learning.agents.base import BaseAgent, as_str_list
from synapse_learning.db.base import utcnow
from synapse_learning.db.models import AgentType, User
from synapse_learning.errors import BadRequest

DEPTHS = ("quick", "standard", "deep")

RESEARCH_FALLBACK: dict[str, Any] = {
    "analysis": {
        "key_findings": [
            "AI adoption keeps accelerating across industries",
            "Practical, business-focused applications deliver the most value",
        ],
        "trends": ["Generative AI in everyday tools", "Growing focus on responsible AI"],
        "confidence": 8,
    },
    "insights": {
        "recommendations": [
            "Start with a well-scoped pilot project",
            "Build AI literacy across the team",
        ],
        "next_steps": [
            "Identify one workflow that could benefit from AI",
            "Review recent case studies in your industry",
        ],
    },
}


class ResearchAssistantAgent(BaseAgent):
    agent_type = AgentType.research_assistant
    description = "Researches AI topics and summarizes emerging trends."
    capability_list = (
        "Research complex AI topics",
        "Summarize emerging trends",
        "Assess business impact",
        "Suggest next steps",
        "Compare competitors and size markets",
    )
    task_handlers = {
        "CONDUCT_RESEARCH": "_task_conduct_research",
        "ANALYZE_TRENDS": "_task_analyze_trends",
        "COMPETITIVE_ANALYSIS": "_task_competitive_analysis",
        "MARKET_RESEARCH": "_task_market_research",
    }
    chat_temperature = 0.6
    chat_max_tokens = 700
    chat_confidence = 0.8

    system_prompt = (
        "You are a Research Assistant Agent for AI and technology trends. You synthesize "
        "what is known about a question, separate established findings from speculation, "
        "explain business impact, and always finish with actionable recommendations."
    )

    async def conduct_research(
        self,
        *,
        query: str,
        topics: list[str] | None = None,
        depth: str = "standard",
        user: User | None = None,
    ) -> dict[str, Any]:
        if not query or not query.strip():
            raise BadRequest("Query is required")
        depth = depth if depth in DEPTHS else "standard"
        topics = topics or []

        audience = (
            f"a {user.experience.value} {user.role.value} in {user.industry or 'technology'}"
            if user is not None
            else "a business professional"
        )
        prompt = (
            f"Research question: {query}\n"
            f"Related topics: {', '.join(topics) or 'none'}\n"
            f"Depth: {depth}\nAudience: {audience}\n\n"
            "Respond with a JSON object with two keys:\n"
            "analysis: {key_findings (array), trends (array), confidence (1-10)}\n"
            "insights: {recommendations (array), next_steps (array)}"
        )
        result = await self.extract_json(
            prompt, RESEARCH_FALLBACK, temperature=0.6, max_tokens=1200
        )

        analysis = result.get("analysis") if isinstance(result.get("analysis"), dict) else {}
        insights = result.get("insights") if isinstance(result.get("insights"), dict) else {}
        return {
            "query": query,
            "topics": topics,
            "depth": depth,
            "analysis": analysis,
            "insights": insights,
            "trends": as_str_list(analysis.get("trends")),
            "recommendations": as_str_list(insights.get("recommendations")),
            "next_steps": as_str_list(insights.get("next_steps")),
        }

    async def _task_conduct_research(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.conduct_research(
            query=str(data.get("query", "")),
            topics=as_str_list(data.get("topics")),
            depth=str(data.get("depth", "standard")),
        )

    async def _task_analyze_trends(self, data: dict[str, Any]) -> dict[str, Any]:
        area = data.get("area") or "artificial intelligence"
        prompt = (
            f"Analyze current trends in {area}.\n"
            "Respond with a JSON object with: trends (array of objects with trend, "
            "significance, timeline, business_impact, recommendations)."
        )
        return await self.extract_json(prompt, {"trends": []}, temperature=0.6, max_tokens=1200)

    async def _task_competitive_analysis(self, data: dict[str, Any]) -> dict[str, Any]:
        companies = as_str_list(data.get("companies"))
        if not companies:
            raise BadRequest("At least one company is required")
        technology = str(data.get("technology") or "artificial intelligence")
        prompt = (
            f"Conduct a competitive analysis of {', '.join(companies)} for {technology}.\n"
            "Respond with a JSON object with: company_profiles (array of objects with "
            "company, ai_strategy, strengths, weaknesses, market_position), "
            "technology_adoption, competitive_advantages, market_leadership, "
            "investment_levels, partnerships, future_strategies, recommendations (array)."
        )
        analysis = await self.extract_json(
            prompt,
            {
                "company_profiles": [{"company": c} for c in companies],
                "recommendations": ["Track public AI announcements from each company"],
            },
            temperature=0.6,
            max_tokens=1500,
        )
        return {
            "competitive_analysis": analysis,
            "scope": {"companies": companies, "technology": technology},
            "analysis_date": utcnow().isoformat(),
        }

    async def _task_market_research(self, data: dict[str, Any]) -> dict[str, Any]:
        market = str(data.get("market") or "").strip()
        if not market:
            raise BadRequest("Market is required")
        technology = str(data.get("technology") or "artificial intelligence")
        geography = str(data.get("geography") or "Global")
        prompt = (
            f"Analyze the {market} market for {technology} adoption ({geography}).\n"
            "Respond with a JSON object with: market_size, growth_rate, key_drivers (array), "
            "barriers (array), market_segments, customer_profiles, pricing_trends, "
            "regulatory_factors, competitive_landscape, opportunities (array)."
        )
        research = await self.extract_json(
            prompt,
            {
                "key_drivers": ["Demand for automation and efficiency"],
                "barriers": ["Skills shortages", "Data quality and governance"],
                "opportunities": [],
            },
            temperature=0.6,
            max_tokens=1500,
        )
        return {
            "market_research": research,
            "scope": {"market": market, "technology": technology, "geography": geography},
            "research_date": utcnow().isoformat(),
        }

    def suggestions(self, message: str) -> list[str]:
        return [
            "Ask for the latest trends in a specific area",
            "Request a deeper analysis of one finding",
            "Ask how this affects your industry",
        ]

    def follow_up_questions(self, message: str) -> list[str]:
        return ["Should I focus on a particular industry?", "Do you want a quick or deep dive?"]
