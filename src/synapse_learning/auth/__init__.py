"""
synapse_learning.auth

Authentication package.

Responsibilities:
- JWT helpers and validation.
- Password hashing.
- FastAPI auth dependencies (required and optional principals).
"""

# Package marker.
