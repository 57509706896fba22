"""
synapse_learning.llm

LLM provider boundary.

Responsibilities:
- Chat-completions HTTP client with token/cost accounting.
- Lenient JSON extraction from model output.
"""

# Package marker.
