"""
Semantic Ranker - Query Session

Holds what a UI keeps between renders: the last EmbeddingResult and whether a
query is running. run_query() is guarded by model readiness and by the
processing flag; clear_results() drops the held result only.
"""

from __future__ import annotations

from collections.abc import Sequence

from semantic_ranker.core.exceptions import ModelNotReadyError, QueryInProgressError
from semantic_ranker.core.logging import get_logger
from semantic_ranker.models.lifecycle import ModelLifecycleManager
from semantic_ranker.models.query_runner import EmbeddingResult, QueryRunner

logger = get_logger(__name__)


class QuerySession:
    """Last-result holder around a QueryRunner."""

    def __init__(self, manager: ModelLifecycleManager, runner: QueryRunner) -> None:
        self._manager = manager
        self._runner = runner
        self._results: EmbeddingResult | None = None
        self._is_processing = False

    @property
    def results(self) -> EmbeddingResult | None:
        return self._results

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    async def run_query(self, query: str, documents: Sequence[str]) -> EmbeddingResult:
        """Run a query and keep its result.

        Raises:
            ModelNotReadyError: If the model is not initialized
            QueryInProgressError: If this session is already running a query
            InferenceFailedError: Propagated from the runner
        """
        if not self._manager.get_state().is_initialized:
            raise ModelNotReadyError("Model not loaded yet")
        if self._is_processing:
            raise QueryInProgressError("A query is already being processed")

        self._is_processing = True
        try:
            result = await self._runner.run(query, documents)
        finally:
            self._is_processing = False

        self._results = result
        return result

    def clear_results(self) -> None:
        self._results = None
        logger.debug("results_cleared")
