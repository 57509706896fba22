"""
synapse_learning.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, LLM API key).
- Offer a cached settings instance for the process entrypoints.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SYNAPSE_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and the task broker.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "synapse-learning"
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    api_host: str = "0.0.0.0"
    api_port: int = 3001

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "synapse-learning"
    jwt_audience: str = "synapse-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    jwt_ttl_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./synapse.db"
    db_echo: bool = False
    db_busy_timeout_seconds: float = 30.0

    # LLM provider (OpenAI-compatible chat completions)
    openai_api_key: str | None = Field(default=None, repr=False)
    openai_base_url: str = "https://api.openai.com/v1"
    llm_timeout_seconds: float = 60.0
    llm_max_retries: int = 1

    content_curator_model: str = "gpt-3.5-turbo"
    learning_strategist_model: str = "gpt-4"
    practice_coach_model: str = "gpt-3.5-turbo"
    research_assistant_model: str = "gpt-3.5-turbo"
    conversation_coach_model: str = "gpt-3.5-turbo"

    # Background tasks
    redis_url: str = "redis://localhost:6379/0"
    task_max_retries: int = 3
    task_backoff_ms: int = 2000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars in entrypoints (uvicorn main, task workers).
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The API reads settings from `app.state.settings` so tests can inject their own instance.
