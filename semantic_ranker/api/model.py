"""
Model Lifecycle API Endpoints

GET  /api/v1/model/state       - current ServiceState snapshot
POST /api/v1/model/initialize  - load the model (no-op when ready)
POST /api/v1/model/reset       - discard the model and restore defaults
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from semantic_ranker.api.dependencies import get_context
from semantic_ranker.context import AppContext
from semantic_ranker.core.exceptions import ModelLoadFailedError, ModelNotReadyError
from semantic_ranker.core.logging import get_logger
from semantic_ranker.models.lifecycle import ModelLifecycleManager

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/model", tags=["model"])


class ModelStateResponse(BaseModel):
    """ServiceState plus the model identity."""

    is_loading: bool = Field(..., description="A load sweep is in flight")
    is_initialized: bool = Field(..., description="The model is ready for queries")
    error: str | None = Field(None, description="Last terminal load failure")
    model_id: str = Field(..., description="Pretrained model identifier")
    active_option: str | None = Field(None, description="precision/device of the loaded model")


def _state_response(manager: ModelLifecycleManager) -> ModelStateResponse:
    state = manager.get_state()
    option = manager.active_option
    return ModelStateResponse(
        is_loading=state.is_loading,
        is_initialized=state.is_initialized,
        error=state.error,
        model_id=manager.model_id,
        active_option=option.describe() if option is not None else None,
    )


@router.get("/state", response_model=ModelStateResponse)
async def get_model_state(
    context: Annotated[AppContext, Depends(get_context)],
) -> ModelStateResponse:
    return _state_response(context.manager)


@router.post("/initialize", response_model=ModelStateResponse)
async def initialize_model(
    context: Annotated[AppContext, Depends(get_context)],
) -> ModelStateResponse:
    """Await model initialization; joins a load already in flight."""
    try:
        await context.manager.initialize()
    except (ModelLoadFailedError, ModelNotReadyError) as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Model initialization failed: {e}",
        ) from e
    return _state_response(context.manager)


@router.post("/reset", response_model=ModelStateResponse)
async def reset_model(
    context: Annotated[AppContext, Depends(get_context)],
) -> ModelStateResponse:
    context.manager.reset()
    context.session.clear_results()
    logger.info("model_reset_requested")
    return _state_response(context.manager)
