"""FastAPI dependency returning the AppContext built by the lifespan."""

from fastapi import Request

from semantic_ranker.context import AppContext


def get_context(request: Request) -> AppContext:
    """Pattern: Dependency injection per FastAPI patterns."""
    return request.app.state.context
