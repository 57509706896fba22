"""
synapse_learning.services

Service-layer package.

Responsibilities:
- Own transaction boundaries and persistence decisions.
- Coordinate agents, repositories and the LLM client.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services should be pure Python and easily testable with fake transports/sessions.
