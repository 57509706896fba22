"""
synapse_learning.api.app

FastAPI app factory for the Synapse Learning service.

Responsibilities:
- Build the FastAPI application and register routers, middleware and error envelopes.
- Own shared infrastructure for the process lifetime (DB engine/session factory,
  LLM HTTP client).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from synapse_learning import __version__
from synapse_learning.api.errors import register_exception_handlers
from synapse_learning.api.routers.agents import router as agents_router
from synapse_learning.api.routers.analytics import router as analytics_router
from synapse_learning.api.routers.auth import router as auth_router
from synapse_learning.api.routers.health import router as health_router
from synapse_learning.api.routers.learning_paths import router as learning_paths_router
from synapse_learning.api.routers.progress import router as progress_router
from synapse_learning.api.routers.topics import router as topics_router
from synapse_learning.db.init_db import init_db
from synapse_learning.db.session import create_engine, create_sessionmaker
from synapse_learning.observability.logging import configure_logging, get_logger
from synapse_learning.observability.middleware import RequestContextMiddleware
from synapse_learning.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, fmt=settings.log_format
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.llm_http = httpx.AsyncClient(timeout=settings.llm_timeout_seconds)
        if settings.env in ("dev", "test"):
            # Prod schemas are managed by Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await app.state.llm_http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Synapse Learning",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(agents_router)
    app.include_router(topics_router)
    app.include_router(learning_paths_router)
    app.include_router(progress_router)
    app.include_router(analytics_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic stays in services and agents.
