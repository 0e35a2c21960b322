"""
Document List API Endpoints

GET    /api/v1/documents          - current documents
POST   /api/v1/documents          - append a document
DELETE /api/v1/documents/{index}  - remove a document

Every mutation rewrites the persisted list. A failed write returns 503 and
leaves the list as it was.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from semantic_ranker.api.dependencies import get_context
from semantic_ranker.context import AppContext
from semantic_ranker.core.exceptions import DocumentNotFoundError
from semantic_ranker.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])


class AddDocumentRequest(BaseModel):
    """Request body for adding a document."""

    text: str = Field(..., description="Document text")

    @field_validator("text")
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Document text cannot be empty")
        return v


class DocumentsResponse(BaseModel):
    """Current document list."""

    documents: list[str]
    count: int


def _documents_response(documents: list[str]) -> DocumentsResponse:
    return DocumentsResponse(documents=documents, count=len(documents))


def _storage_unavailable(e: OSError) -> HTTPException:
    logger.error("documents_persist_failed", error=str(e))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Could not persist documents: {e}",
    )


@router.get("", response_model=DocumentsResponse)
async def list_documents(
    context: Annotated[AppContext, Depends(get_context)],
) -> DocumentsResponse:
    return _documents_response(context.documents.list_documents())


@router.post("", response_model=DocumentsResponse, status_code=status.HTTP_201_CREATED)
async def add_document(
    request: AddDocumentRequest,
    context: Annotated[AppContext, Depends(get_context)],
) -> DocumentsResponse:
    try:
        documents = context.documents.add_document(request.text)
    except OSError as e:
        raise _storage_unavailable(e) from e
    return _documents_response(documents)


@router.delete("/{index}", response_model=DocumentsResponse)
async def remove_document(
    index: int,
    context: Annotated[AppContext, Depends(get_context)],
) -> DocumentsResponse:
    try:
        documents = context.documents.remove_document(index)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except OSError as e:
        raise _storage_unavailable(e) from e
    return _documents_response(documents)
