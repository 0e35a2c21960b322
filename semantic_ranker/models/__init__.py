"""Embedding model lifecycle, query ranking and runtime adapters.

- lifecycle: ModelLifecycleManager (load-with-fallback, single-flight, reset)
- query_runner: QueryRunner producing EmbeddingResult rankings
- runtime: SentenceTransformerRuntime implementing ModelRuntimeProtocol
- fakes: FakeModelRuntime for tests
"""

from semantic_ranker.models.constants import (
    DEFAULT_LOAD_OPTIONS,
    Device,
    LoadOption,
    Precision,
    parse_load_options,
)
from semantic_ranker.models.lifecycle import ModelHandle, ModelLifecycleManager, ServiceState
from semantic_ranker.models.query_runner import EmbeddingResult, QueryRunner, RankedDocument

__all__ = [
    "DEFAULT_LOAD_OPTIONS",
    "Device",
    "EmbeddingResult",
    "LoadOption",
    "ModelHandle",
    "ModelLifecycleManager",
    "Precision",
    "QueryRunner",
    "RankedDocument",
    "ServiceState",
    "parse_load_options",
]
