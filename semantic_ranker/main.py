"""
Semantic Ranker - Main Application Entry Point

- FastAPI app with lifespan handler
- uvicorn semantic_ranker.main:app starts the service

Patterns Applied:
- Lifespan context manager builds the AppContext (composition root)
- One-time configure_logging() at startup
- Model loading scheduled in the background so startup is not blocked

Anti-Patterns Avoided:
- Deprecated @app.on_event - using modern lifespan pattern
- structlog.configure() per request - one-time at startup
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from semantic_ranker.api.documents import router as documents_router
from semantic_ranker.api.health import router as health_router
from semantic_ranker.api.model import router as model_router
from semantic_ranker.api.rank import router as rank_router
from semantic_ranker.context import AppContext, build_context
from semantic_ranker.core.config import Settings, get_settings
from semantic_ranker.core.exceptions import ModelLoadFailedError, ModelNotReadyError
from semantic_ranker.core.logging import configure_logging, get_logger
from semantic_ranker.core.tracing import configure_tracing
from semantic_ranker.models.lifecycle import ModelLifecycleManager

logger = get_logger(__name__)


async def _autoload(manager: ModelLifecycleManager) -> None:
    """Background initialize(); failures stay visible through the state."""
    try:
        await manager.initialize()
    except (ModelLoadFailedError, ModelNotReadyError) as e:
        logger.error("model_autoload_failed", error=str(e))


def create_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings override (read from environment when omitted)
        context: Prebuilt AppContext, e.g. one wired to FakeModelRuntime

    Returns:
        Configured FastAPI app
    """
    if settings is None:
        settings = context.settings if context is not None else get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_output=settings.log_json,
        service_name=settings.service_name,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # =====================================================================
        # STARTUP
        # =====================================================================
        logger.info(
            "startup",
            service=settings.service_name,
            version=settings.version,
            environment=settings.environment,
            model_id=settings.model_id,
        )

        if settings.tracing_enabled:
            configure_tracing(
                service_name=settings.service_name,
                service_version=settings.version,
                console_export=settings.tracing_console_export,
            )
            logger.info("tracing_configured")

        app.state.context = context or build_context(settings)

        autoload_task: asyncio.Task[None] | None = None
        if settings.autoload_model:
            autoload_task = asyncio.create_task(_autoload(app.state.context.manager))

        yield

        # =====================================================================
        # SHUTDOWN
        # =====================================================================
        if autoload_task is not None and not autoload_task.done():
            autoload_task.cancel()
        logger.info("shutdown", service=settings.service_name)

    app = FastAPI(
        title="Semantic-Ranker",
        description="Rank stored documents against a query with a pretrained embedding model",
        version=settings.version,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(model_router)
    app.include_router(documents_router)
    app.include_router(rank_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint pointing at the docs."""
        return {
            "service": settings.service_name,
            "version": settings.version,
            "docs": "/docs",
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("semantic_ranker.main:app", host=settings.host, port=settings.port)
