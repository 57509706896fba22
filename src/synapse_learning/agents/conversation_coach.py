"""
synapse_learning.agents.conversation_coach

Conversation Coach agent: the default chat handler for general learning questions.
"""

from __future__ import annotations

from synapse_learning.agents.base import BaseAgent
from synapse_learning.db.models import AgentType


class ConversationCoachAgent(BaseAgent):
    agent_type = AgentType.conversation_coach
    description = "General AI learning coach for open-ended questions."
    capability_list = (
        "Answer questions about AI and technology",
        "Explain concepts concisely",
        "Point to the right specialist agent",
    )
    chat_temperature = 0.7
    chat_max_tokens = 500
    chat_confidence = 0.8

    system_prompt = (
        "You are an AI learning coach. Provide helpful, educational responses about AI "
        "and technology topics. Keep responses concise and practical."
    )

    def suggestions(self, message: str) -> list[str]:
        return [
            "Ask me to plan a learning path",
            "Ask for a practice scenario",
            "Ask about the latest AI trends",
        ]
