"""
Semantic Ranker - Health API Routes

/health: liveness, always 200
/ready: 200 once the embedding model is initialized, 503 before

Patterns Applied:
- Health Check Pattern with Pydantic response models
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from semantic_ranker.api.dependencies import get_context
from semantic_ranker.context import AppContext
from semantic_ranker.core.logging import get_logger

router = APIRouter(tags=["health"])

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    checks: dict[str, bool]
    error: str | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Basic health check endpoint for liveness probe",
)
async def health_check(
    context: Annotated[AppContext, Depends(get_context)],
) -> HealthResponse:
    settings = context.settings
    logger.debug("health_check", status="healthy")
    return HealthResponse(
        status="healthy",
        version=settings.version,
        service=settings.service_name,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready"},
    },
    summary="Readiness Check",
)
async def readiness_check(
    context: Annotated[AppContext, Depends(get_context)],
) -> JSONResponse:
    """Return 200 if the model is loaded, 503 otherwise."""
    state = context.manager.get_state()
    is_ready = state.is_initialized

    body = ReadinessResponse(
        status="ready" if is_ready else "not_ready",
        checks={"model_loaded": state.is_initialized, "model_loading": state.is_loading},
        error=state.error,
    )
    status_code = status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE

    logger.debug("readiness_check", status=body.status, is_ready=is_ready)
    return JSONResponse(content=body.model_dump(), status_code=status_code)
