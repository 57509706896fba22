"""
synapse_learning.api

API package for the Synapse Learning service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, error envelopes and request models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request validation + auth + delegation to services.
