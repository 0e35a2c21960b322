"""
Model Lifecycle Manager - Load-with-Fallback and Single-Flight Initialization.

Brings the embedding model from "unloaded" to "ready" exactly once. Each
candidate LoadOption is tried in order; tokenizer and model loads are each
wrapped by retry_with_backoff. The first candidate whose tokenizer and model
both load becomes the active ModelHandle.

Patterns Applied:
- Explicit context object instead of a module-level singleton: one manager is
  built at the composition root and injected where needed
- asyncio.Lock + shared in-flight Task for single-flight initialization
- Generation counter so a load finishing after reset() is discarded
- Protocol typing for the runtime (FakeModelRuntime in tests)

Anti-Patterns Avoided:
- #7: Exception Shadowing - ModelLoadFailedError / ModelNotReadyError
- #10: State Mutation - state replaced with frozen snapshots, never mutated in place
- #12: Model reloaded per request - handle cached after first successful load
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from semantic_ranker.core.config import DEFAULT_MODEL_ID
from semantic_ranker.core.exceptions import ModelLoadFailedError, ModelNotReadyError
from semantic_ranker.core.logging import get_logger
from semantic_ranker.core.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    SleepFunc,
    retry_with_backoff,
)
from semantic_ranker.core.tracing import get_tracer
from semantic_ranker.models.constants import DEFAULT_LOAD_OPTIONS, LoadOption
from semantic_ranker.models.protocols import ModelRuntimeProtocol

logger = get_logger(__name__)
tracer = get_tracer(__name__)

NO_CONFIGURATION_WORKED = "No model configuration worked"


def _retrieve_outcome(task: asyncio.Task[None]) -> None:
    # A sweep orphaned by reset() may finish with nobody awaiting it
    if not task.cancelled():
        task.exception()


# =============================================================================
# State Snapshots
# =============================================================================


@dataclass(frozen=True)
class ServiceState:
    """Observable model status.

    Attributes:
        is_loading: A load sweep is in flight
        is_initialized: A ModelHandle is active
        error: Message of the last terminal load failure
    """

    is_loading: bool = False
    is_initialized: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_loading": self.is_loading,
            "is_initialized": self.is_initialized,
            "error": self.error,
        }


@dataclass(frozen=True)
class ModelHandle:
    """Tokenizer/model pair produced by a successful load attempt."""

    tokenizer: Any
    model: Any
    option: LoadOption


# =============================================================================
# Lifecycle Manager
# =============================================================================


class ModelLifecycleManager:
    """Owns the ServiceState and the active ModelHandle.

    Usage:
        manager = ModelLifecycleManager(runtime=SentenceTransformerRuntime())
        await manager.initialize()
        state = manager.get_state()
    """

    def __init__(
        self,
        runtime: ModelRuntimeProtocol,
        model_id: str = DEFAULT_MODEL_ID,
        load_options: Sequence[LoadOption] = DEFAULT_LOAD_OPTIONS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._runtime = runtime
        self._model_id = model_id
        self._load_options = tuple(load_options)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

        self._state = ServiceState()
        self._handle: ModelHandle | None = None
        self._generation = 0
        self._inflight: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def load_options(self) -> tuple[LoadOption, ...]:
        return self._load_options

    @property
    def active_option(self) -> LoadOption | None:
        """LoadOption of the active handle, None when not ready."""
        return self._handle.option if self._handle is not None else None

    def get_state(self) -> ServiceState:
        """Return an immutable snapshot of the current state."""
        return self._state

    def borrow_handle(self) -> ModelHandle:
        """Return the active handle for the duration of one call.

        Raises:
            ModelNotReadyError: If initialize() has not completed successfully
        """
        handle = self._handle
        if not self._state.is_initialized or handle is None:
            raise ModelNotReadyError(
                "Model not loaded yet. Call initialize() first."
            )
        return handle

    async def initialize(self) -> None:
        """Load the model, collapsing concurrent callers into one sweep.

        No-op when the model is already initialized.

        Raises:
            ModelLoadFailedError: If every load option failed
            ModelNotReadyError: If reset() discarded the load this call awaited
        """
        if self._state.is_initialized:
            return

        async with self._lock:
            if self._state.is_initialized:
                return
            if self._inflight is None or self._inflight.done():
                self._state = ServiceState(is_loading=True)
                self._inflight = asyncio.create_task(self._sweep(self._generation))
                self._inflight.add_done_callback(_retrieve_outcome)
            task = self._inflight

        # Shielded: a caller timing out stops waiting but the load keeps running
        await asyncio.shield(task)

    def reset(self) -> None:
        """Discard the handle and restore the default state.

        A load still in flight keeps running; its outcome is ignored.
        """
        self._generation += 1
        self._handle = None
        self._inflight = None
        self._state = ServiceState()
        logger.info("model_lifecycle_reset", generation=self._generation)

    # =========================================================================
    # Load Sweep
    # =========================================================================

    async def _sweep(self, generation: int) -> None:
        with tracer.start_as_current_span("model.initialize") as span:
            span.set_attribute("model.id", self._model_id)
            last_error: Exception | None = None

            for option in self._load_options:
                if generation != self._generation:
                    break
                try:
                    handle = await self._load_option(option)
                except Exception as e:
                    last_error = e
                    logger.warning(
                        "model_load_option_failed",
                        option=option.describe(),
                        error=str(e),
                    )
                    continue

                if generation != self._generation:
                    break

                self._handle = handle
                self._state = ServiceState(is_initialized=True)
                span.set_attribute("model.option", option.describe())
                logger.info(
                    "model_loaded",
                    model_id=self._model_id,
                    option=option.describe(),
                )
                return

            if generation != self._generation:
                logger.info("model_load_discarded", generation=generation)
                raise ModelNotReadyError("Model load was discarded by reset()")

            message = str(last_error) if last_error is not None else NO_CONFIGURATION_WORKED
            self._state = ServiceState(error=message)
            logger.error("model_load_failed", model_id=self._model_id, error=message)
            raise ModelLoadFailedError(message)

    async def _load_option(self, option: LoadOption) -> ModelHandle:
        logger.info("model_load_attempt", model_id=self._model_id, option=option.describe())

        tokenizer = await retry_with_backoff(
            lambda: asyncio.to_thread(self._runtime.load_tokenizer, self._model_id),
            self._max_retries,
            self._base_delay,
            sleep=self._sleep,
            label="load_tokenizer",
        )
        model = await retry_with_backoff(
            lambda: asyncio.to_thread(self._runtime.load_model, self._model_id, option),
            self._max_retries,
            self._base_delay,
            sleep=self._sleep,
            label="load_model",
        )
        return ModelHandle(tokenizer=tokenizer, model=model, option=option)
