"""
Semantic Ranker - Application Context

Composition root: builds every collaborator once from Settings and passes
them around explicitly. The FastAPI lifespan stores the context on
``app.state.context``; tests build one around FakeModelRuntime.

Patterns Applied:
- Dependency injection instead of module-level singletons
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from semantic_ranker.core.config import Settings
from semantic_ranker.core.retry import SleepFunc
from semantic_ranker.models.constants import DEFAULT_LOAD_OPTIONS, parse_load_options
from semantic_ranker.models.lifecycle import ModelLifecycleManager
from semantic_ranker.models.protocols import ModelRuntimeProtocol
from semantic_ranker.models.query_runner import QueryRunner
from semantic_ranker.session import QuerySession
from semantic_ranker.storage.document_store import (
    DocumentStore,
    JsonFileKeyValueStore,
    KeyValueStoreProtocol,
)


@dataclass
class AppContext:
    """Everything the API layer needs, wired together."""

    settings: Settings
    manager: ModelLifecycleManager
    runner: QueryRunner
    documents: DocumentStore
    session: QuerySession


def build_context(
    settings: Settings,
    runtime: ModelRuntimeProtocol | None = None,
    kv_store: KeyValueStoreProtocol | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> AppContext:
    """Wire an AppContext from settings.

    Args:
        settings: Application settings
        runtime: Model runtime (SentenceTransformerRuntime when omitted)
        kv_store: Document backend (JSON file at settings.documents_path when omitted)
        sleep: Sleep used by retry backoff

    Returns:
        A fresh AppContext; the model is not loaded yet

    Raises:
        ConfigurationError: If settings.load_options holds an unknown label
    """
    if runtime is None:
        from semantic_ranker.models.runtime import SentenceTransformerRuntime

        runtime = SentenceTransformerRuntime(
            cache_dir=settings.model_cache_dir, token=settings.hf_token
        )

    load_options = (
        DEFAULT_LOAD_OPTIONS
        if settings.load_options is None
        else parse_load_options(settings.load_options)
    )
    manager = ModelLifecycleManager(
        runtime=runtime,
        model_id=settings.model_id,
        load_options=load_options,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        sleep=sleep,
    )
    runner = QueryRunner(
        manager=manager,
        runtime=runtime,
        query_prefix=settings.query_prefix,
        document_prefix=settings.document_prefix,
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        sleep=sleep,
    )
    documents = DocumentStore(
        backend=kv_store or JsonFileKeyValueStore(settings.documents_path),
        key=settings.documents_key,
    )
    return AppContext(
        settings=settings,
        manager=manager,
        runner=runner,
        documents=documents,
        session=QuerySession(manager, runner),
    )
