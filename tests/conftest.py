"""Shared fixtures: fake runtime, recorded backoff sleeps, isolated settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from semantic_ranker.core.config import Settings
from semantic_ranker.models.fakes import FakeModelRuntime


class RecordingSleep:
    """Async sleep stand-in that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_runtime() -> FakeModelRuntime:
    return FakeModelRuntime()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings that never autoload, never wait on backoff, and write to tmp."""
    return Settings(
        _env_file=None,
        documents_path=str(tmp_path / "documents.json"),
        autoload_model=False,
        retry_base_delay=0.0,
        log_json=False,
    )
