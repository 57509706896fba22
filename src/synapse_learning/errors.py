"""
synapse_learning.errors

Domain exception hierarchy.

Responsibilities:
- Give every expected failure a stable message and HTTP status code.
- Keep services free of FastAPI types; the API layer maps these to envelopes.
"""

from __future__ import annotations


class SynapseError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(SynapseError):
    status_code = 404


class Conflict(SynapseError):
    # The public API reports duplicates as a plain bad request.
    status_code = 400


class BadRequest(SynapseError):
    status_code = 400


class ValidationError(SynapseError, ValueError):
    # Out-of-range or malformed model attributes.
    status_code = 400


class Unauthorized(SynapseError):
    status_code = 401


class UnknownRequestType(SynapseError):
    status_code = 400

    def __init__(self, request_type: str) -> None:
        super().__init__(f"Unknown request type: {request_type}")
        self.request_type = request_type


class AgentError(SynapseError):
    status_code = 500


class LLMError(SynapseError):
    status_code = 502


class LLMNotConfigured(LLMError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("LLM API key not configured")
