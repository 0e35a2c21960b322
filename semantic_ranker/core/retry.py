"""
Semantic Ranker - Retry with Exponential Backoff

Shared by tokenizer loading, model loading, tokenization and inference.

Patterns Applied:
- Retry with exponential backoff: delay = base_delay * 2 ** attempt
- Injectable sleep so tests can record waits without real delays

Anti-Patterns Avoided:
- Surfacing transient failures: intermediate errors are logged, only the
  last failure propagates
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Final, TypeVar

from semantic_ranker.core.exceptions import ConfigurationError
from semantic_ranker.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES: Final[int] = 3
DEFAULT_BASE_DELAY: Final[float] = 1.0

SleepFunc = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Return the wait before the retry following attempt ``attempt`` (0-based)."""
    return base_delay * (2 ** attempt)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    *,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or ``max_retries`` attempts are used.

    Every exception is retried the same way; the policy does not inspect
    why the operation failed.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_retries: Total number of attempts (must be >= 1)
        base_delay: Delay in seconds before the first retry
        sleep: Awaitable sleep function (asyncio.sleep by default)
        label: Name used in log events

    Returns:
        The operation's result

    Raises:
        ConfigurationError: If max_retries < 1
        Exception: The last failure once attempts are exhausted
    """
    if max_retries < 1:
        raise ConfigurationError(f"max_retries must be >= 1, got {max_retries}")

    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            logger.warning(
                "retry_attempt_failed",
                operation=label,
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(e),
            )
            if attempt == max_retries - 1:
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.info("retry_scheduled", operation=label, delay_seconds=delay)
            await sleep(delay)

    # Unreachable: the loop either returns or re-raises
    raise ConfigurationError("retry loop exited without result")
