"""
Ranking API Endpoints

POST   /api/v1/rank     - rank documents against a query
GET    /api/v1/results  - last result held by the session
DELETE /api/v1/results  - clear the held result

Patterns Applied:
- FastAPI router with Pydantic request/response models
- Domain exceptions mapped to HTTP status codes at the route boundary
"""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from semantic_ranker.api.dependencies import get_context
from semantic_ranker.context import AppContext
from semantic_ranker.core.exceptions import (
    InferenceFailedError,
    ModelNotReadyError,
    QueryInProgressError,
)
from semantic_ranker.core.logging import get_logger
from semantic_ranker.models.query_runner import EmbeddingResult

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["rank"])

DEFAULT_QUERY: str = "Which planet is known as the Red Planet?"


class RankRequest(BaseModel):
    """Request body for the rank endpoint."""

    query: str = Field(..., min_length=1, examples=[DEFAULT_QUERY])
    documents: list[str] | None = Field(
        None, description="Documents to rank; the stored list when omitted"
    )


class RankedDocumentModel(BaseModel):
    index: int
    score: float
    text: str


class RankResponse(BaseModel):
    """EmbeddingResult as JSON."""

    query: str
    similarities: list[float]
    ranking: list[RankedDocumentModel]
    processing_time_ms: float | None = None


def _to_response(result: EmbeddingResult, elapsed_ms: float | None = None) -> RankResponse:
    return RankResponse(**result.to_dict(), processing_time_ms=elapsed_ms)


@router.post("/rank", response_model=RankResponse)
async def rank(
    request: RankRequest,
    context: Annotated[AppContext, Depends(get_context)],
) -> RankResponse:
    documents = (
        request.documents
        if request.documents is not None
        else context.documents.list_documents()
    )

    start = time.perf_counter()
    try:
        result = await context.session.run_query(request.query, documents)
    except (ModelNotReadyError, QueryInProgressError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except InferenceFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Inference failed: {e}",
        ) from e
    elapsed_ms = (time.perf_counter() - start) * 1000

    return _to_response(result, elapsed_ms)


@router.get("/results", response_model=RankResponse)
async def get_results(
    context: Annotated[AppContext, Depends(get_context)],
) -> RankResponse:
    result = context.session.results
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No results")
    return _to_response(result)


@router.delete("/results", status_code=status.HTTP_204_NO_CONTENT)
async def clear_results(
    context: Annotated[AppContext, Depends(get_context)],
) -> Response:
    context.session.clear_results()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
