"""
synapse_learning.observability.logging

Structured logging setup shared by the API process and the task workers.

Responsibilities:
- Configure `structlog` with JSON output (or a console renderer for local work).
- Scrub credentials (passwords, bearer tokens, API keys) from every event.
- Keep chatty client libraries at WARNING so agent events stay readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog

REDACTED = "[redacted]"

SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "password",
        "current_password",
        "new_password",
        "password_hash",
        "token",
        "api_key",
        "openai_api_key",
        "jwt_secret",
    }
)

# Transport and driver loggers that would otherwise echo every LLM call and query.
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine", "dramatiq")


def configure_logging(
    *, service_name: str, level: str, fmt: Literal["json", "console"] = "json"
) -> None:
    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=root_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service_name(service_name),
        redact_secrets,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace credential-bearing fields, including ones nested in request context dicts."""
    return _scrub(event_dict)


def get_logger(name: str, **initial: Any) -> structlog.stdlib.BoundLogger:
    log = structlog.get_logger(name)
    return log.bind(**initial) if initial else log


# --- Module Notes -----------------------------------------------------------
# `request_id`, `method`, `path` and, once authenticated, `user_id` arrive through
# contextvars bound in `observability.middleware` and `auth.deps`.
