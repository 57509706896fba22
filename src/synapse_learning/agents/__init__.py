"""
synapse_learning.agents

Prompt-template agents.

Responsibilities:
- One agent per learning concern (curation, paths, practice, research, conversation).
- Each agent owns its system prompt, model choice, fallbacks and persistence.
"""

from synapse_learning.agents.base import BaseAgent
from synapse_learning.agents.content_curator import ContentCuratorAgent
from synapse_learning.agents.conversation_coach import ConversationCoachAgent
from synapse_learning.agents.learning_strategist import LearningStrategistAgent
from synapse_learning.agents.practice_coach import PracticeCoachAgent
from synapse_learning.agents.research_assistant import ResearchAssistantAgent

__all__ = [
    "BaseAgent",
    "ContentCuratorAgent",
    "ConversationCoachAgent",
    "LearningStrategistAgent",
    "PracticeCoachAgent",
    "ResearchAssistantAgent",
]
