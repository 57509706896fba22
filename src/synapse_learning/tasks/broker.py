"""
synapse_learning.tasks.broker

Dramatiq broker configuration.

Responsibilities:
- Select the broker per environment (in-memory stub for dev/test, Redis otherwise).
- Attach middleware that logs task outcomes through structlog.
"""

from __future__ import annotations

from typing import Any

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from synapse_learning.observability.logging import get_logger
from synapse_learning.settings import Settings, get_settings

log = get_logger(__name__)

AGENT_TASKS_QUEUE = "agent_tasks"

_broker: dramatiq.Broker | None = None


class TaskEventsMiddleware(dramatiq.Middleware):
    def after_process_message(
        self,
        broker: dramatiq.Broker,
        message: dramatiq.Message,
        *,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        fields = {
            "message_id": message.message_id,
            "actor": message.actor_name,
            "retries": message.options.get("retries", 0),
        }
        if exception is None:
            log.info("agent_task_completed", **fields)
        else:
            log.warning("agent_task_failed", error=str(exception), **fields)


def setup_broker(settings: Settings | None = None) -> dramatiq.Broker:
    """
    Configure the global broker once; actors must be declared after this runs.
    """

    global _broker
    if _broker is not None:
        return _broker

    settings = settings or get_settings()
    if settings.env in ("dev", "test"):
        broker: dramatiq.Broker = StubBroker()
        broker.emit_after("process_boot")
    else:
        broker = RedisBroker(url=settings.redis_url)
        log.info("task_broker_redis", url=settings.redis_url.split("@")[-1])

    broker.add_middleware(TaskEventsMiddleware())
    dramatiq.set_broker(broker)
    _broker = broker
    return broker


def get_broker() -> dramatiq.Broker:
    return _broker or setup_broker()
