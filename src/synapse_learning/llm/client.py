"""
synapse_learning.llm.client

HTTP client boundary for the LLM provider (OpenAI-compatible chat completions).

Responsibilities:
- Send one chat-completions request per call and return content + usage.
- Price token usage with a per-model cost table.
- Translate transport/HTTP failures into domain errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from synapse_learning.errors import LLMError, LLMNotConfigured
from synapse_learning.observability.logging import get_logger
from synapse_learning.settings import Settings

log = get_logger(__name__)

# USD per 1k tokens.
MODEL_COSTS: dict[str, float] = {
    "gpt-3.5-turbo": 0.002,
    "gpt-4": 0.03,
    "gpt-4-turbo": 0.01,
}
DEFAULT_COST_PER_1K = 0.002


def estimate_cost(model: str, tokens: int) -> float:
    return tokens / 1000 * MODEL_COSTS.get(model, DEFAULT_COST_PER_1K)


@dataclass(frozen=True, slots=True)
class LLMResponse:
    content: str
    tokens_used: int
    cost: float
    model: str


class LLMClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    @property
    def configured(self) -> bool:
        return bool(self._settings.openai_api_key)

    async def chat(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        if not self.configured:
            raise LLMNotConfigured()

        url = f"{self._settings.openai_base_url.rstrip('/')}/chat/completions"
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            r = await self._http.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self._settings.openai_api_key}"},
                timeout=self._settings.llm_timeout_seconds,
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning("llm_http_error", model=model, status_code=e.response.status_code)
            raise LLMError(f"LLM request failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            log.warning("llm_transport_error", model=model, error=str(e))
            raise LLMError(f"LLM request failed: {e}") from e

        # Gateways can answer 200 with an HTML page or a non-object body.
        try:
            body = r.json()
            content = body["choices"][0]["message"]["content"] or ""
            tokens = int((body.get("usage") or {}).get("total_tokens", 0))
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            log.warning("llm_malformed_response", model=model, status_code=r.status_code)
            raise LLMError("Malformed LLM response") from e

        return LLMResponse(
            content=content,
            tokens_used=tokens,
            cost=estimate_cost(model, tokens),
            model=model,
        )


# --- Module Notes -----------------------------------------------------------
# The shared `httpx.AsyncClient` is owned by the app lifespan; tests swap it for
# one built on `httpx.MockTransport`.
