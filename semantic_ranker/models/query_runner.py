"""
Query Runner - Rank documents against a query by embedding similarity.

The query and every document are prefixed with task markers, tokenized as one
padded batch, embedded in a single model call, and scored with the full
dot-product matrix E @ E.T. Row 0 minus its self-similarity entry gives one
score per document in original order.

Patterns Applied:
- Service Layer Pattern: no state of its own, borrows the handle per call
- Retry with exponential backoff around tokenize and inference independently
- asyncio.to_thread for blocking runtime calls (event loop stays responsive)

Anti-Patterns Avoided:
- #7: Exception Shadowing - InferenceFailedError wraps runtime failures
- Query failures never touch the lifecycle manager's state
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from semantic_ranker.core.config import DEFAULT_DOCUMENT_PREFIX, DEFAULT_QUERY_PREFIX
from semantic_ranker.core.exceptions import InferenceFailedError
from semantic_ranker.core.logging import get_logger
from semantic_ranker.core.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    SleepFunc,
    retry_with_backoff,
)
from semantic_ranker.core.tracing import get_tracer
from semantic_ranker.models.lifecycle import ModelHandle, ModelLifecycleManager
from semantic_ranker.models.protocols import ModelRuntimeProtocol

logger = get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class RankedDocument:
    """A document's position in the ranking.

    Attributes:
        index: Position of the document in the submitted list
        score: Dot-product similarity with the query
        text: Original, unprefixed document text
    """

    index: int
    score: float
    text: str


@dataclass(frozen=True)
class EmbeddingResult:
    """Outcome of one query run.

    Attributes:
        query: The query as submitted (no prefix)
        similarities: One score per document, in submitted order
        ranking: Documents sorted by score descending, ties in submitted order
    """

    query: str
    similarities: tuple[float, ...]
    ranking: tuple[RankedDocument, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "similarities": list(self.similarities),
            "ranking": [
                {"index": item.index, "score": item.score, "text": item.text}
                for item in self.ranking
            ],
        }


def rank_documents(
    similarities: Sequence[float], documents: Sequence[str]
) -> tuple[RankedDocument, ...]:
    """Pair scores with documents and sort descending.

    sorted() is stable with reverse=True, so equal scores keep submitted order.
    """
    ranked = [
        RankedDocument(index=index, score=score, text=documents[index])
        for index, score in enumerate(similarities)
    ]
    return tuple(sorted(ranked, key=lambda item: item.score, reverse=True))


class QueryRunner:
    """Turns a query and documents into an EmbeddingResult.

    Example:
        >>> runner = QueryRunner(manager, runtime)
        >>> result = await runner.run("What planet is red?", ["Mars is red."])
        >>> result.ranking[0].text
        'Mars is red.'
    """

    def __init__(
        self,
        manager: ModelLifecycleManager,
        runtime: ModelRuntimeProtocol,
        query_prefix: str = DEFAULT_QUERY_PREFIX,
        document_prefix: str = DEFAULT_DOCUMENT_PREFIX,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._manager = manager
        self._runtime = runtime
        self._query_prefix = query_prefix
        self._document_prefix = document_prefix
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    def format_inputs(self, query: str, documents: Sequence[str]) -> list[str]:
        """Prefixed batch: query first, then documents in order."""
        return [self._query_prefix + query] + [
            self._document_prefix + document for document in documents
        ]

    async def run(self, query: str, documents: Sequence[str]) -> EmbeddingResult:
        """Rank ``documents`` by similarity to ``query``.

        Raises:
            ModelNotReadyError: If the model is not initialized
            InferenceFailedError: If tokenization or inference keeps failing
        """
        handle = self._manager.borrow_handle()
        documents = list(documents)

        if not documents:
            return EmbeddingResult(query=query, similarities=(), ranking=())

        with tracer.start_as_current_span("query.run") as span:
            span.set_attribute("query.documents", len(documents))
            similarities = await self._score(handle, query, documents)

        result = EmbeddingResult(
            query=query,
            similarities=similarities,
            ranking=rank_documents(similarities, documents),
        )
        logger.info(
            "query_completed",
            documents=len(documents),
            top_index=result.ranking[0].index,
            top_score=result.ranking[0].score,
        )
        return result

    async def _score(
        self, handle: ModelHandle, query: str, documents: list[str]
    ) -> tuple[float, ...]:
        texts = self.format_inputs(query, documents)

        try:
            inputs = await retry_with_backoff(
                lambda: asyncio.to_thread(self._runtime.tokenize, handle.tokenizer, texts),
                self._max_retries,
                self._base_delay,
                sleep=self._sleep,
                label="tokenize",
            )
            embeddings = await retry_with_backoff(
                lambda: asyncio.to_thread(self._runtime.embed, handle.model, inputs),
                self._max_retries,
                self._base_delay,
                sleep=self._sleep,
                label="inference",
            )
            scores = self._runtime.matmul(embeddings, embeddings.T)
        except Exception as e:
            logger.error("query_failed", error=str(e))
            raise InferenceFailedError(str(e)) from e

        if len(scores) != len(texts):
            raise InferenceFailedError(
                f"Expected {len(texts)} embeddings, model returned {len(scores)}"
            )

        # Row 0 is the query; drop its self-similarity
        return tuple(float(score) for score in scores[0][1:])
