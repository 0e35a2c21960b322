"""
Fake Model Runtime for Testing

Per Repository Pattern:
- FakeClient implementation of ModelRuntimeProtocol
- Deterministic bag-of-words embeddings, so texts sharing words score higher
- Configurable failures to exercise retry and fallback paths
- No real model loading required

Anti-Patterns Avoided:
- #12: FakeClients enable testing without model loading
"""

from __future__ import annotations

import hashlib
import re
import threading
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from semantic_ranker.models.constants import LoadOption

FAKE_EMBEDDING_DIM: int = 1 << 16
PAD_TOKEN_ID: int = -1

_WORD_PATTERN = re.compile(r"[a-z0-9]+")


def _token_id(word: str, dim: int) -> int:
    """Stable bucket for a word, independent of PYTHONHASHSEED."""
    return int(hashlib.md5(word.encode()).hexdigest()[:8], 16) % dim


class FakeTokenizer:
    """Whitespace/punctuation tokenizer producing padded id batches.

    Example:
        >>> tokenizer = FakeTokenizer()
        >>> batch = tokenizer(["a b", "c"], padding=True)
        >>> [len(row) for row in batch["input_ids"]]
        [2, 2]
    """

    def __init__(self, dim: int = FAKE_EMBEDDING_DIM, fail_times: int = 0) -> None:
        self.dim = dim
        self.fail_times = fail_times
        self.calls = 0

    def __call__(self, texts: list[str], padding: bool = False) -> dict[str, list[list[int]]]:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError(f"tokenizer failure {self.calls}")

        rows = [
            [_token_id(word, self.dim) for word in _WORD_PATTERN.findall(text.lower())]
            for text in texts
        ]
        masks = [[1] * len(row) for row in rows]
        if padding:
            width = max((len(row) for row in rows), default=0)
            for row, mask in zip(rows, masks):
                missing = width - len(row)
                row.extend([PAD_TOKEN_ID] * missing)
                mask.extend([0] * missing)
        return {"input_ids": rows, "attention_mask": masks}


class FakeEmbeddingModel:
    """Bag-of-words "model": L2-normalised token counts per row."""

    def __init__(
        self,
        option: LoadOption | None = None,
        dim: int = FAKE_EMBEDDING_DIM,
        fail_times: int = 0,
    ) -> None:
        self.option = option
        self.dim = dim
        self.fail_times = fail_times
        self.calls = 0

    def __call__(self, inputs: dict[str, list[list[int]]]) -> NDArray[np.float32]:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError(f"inference failure {self.calls}")

        ids = inputs["input_ids"]
        masks = inputs["attention_mask"]
        embeddings = np.zeros((len(ids), self.dim), dtype=np.float32)
        for row_index, (row, mask) in enumerate(zip(ids, masks)):
            for token, keep in zip(row, mask):
                if keep:
                    embeddings[row_index, token] += 1.0
            norm = np.linalg.norm(embeddings[row_index])
            if norm > 0:
                embeddings[row_index] /= norm
        return embeddings


@dataclass
class FakeModelRuntime:
    """Fake implementation of ModelRuntimeProtocol.

    Attributes:
        working_options: Options whose model load succeeds (None = all)
        tokenizer_load_failures: Transient failures before a tokenizer loads
        model_load_failures: Transient failures per option before the model loads
        tokenize_failures: Transient failures of the tokenizer call
        inference_failures: Transient failures of the model call
        load_gate: When set, load_model blocks until the event is set
    """

    working_options: set[LoadOption] | None = None
    tokenizer_load_failures: int = 0
    model_load_failures: int = 0
    tokenize_failures: int = 0
    inference_failures: int = 0
    dim: int = FAKE_EMBEDDING_DIM
    load_gate: threading.Event | None = None
    tokenizer_loads: int = 0
    model_load_attempts: list[LoadOption] = field(default_factory=list)
    matmul_calls: int = 0

    def load_tokenizer(self, model_id: str) -> FakeTokenizer:
        self.tokenizer_loads += 1
        if self.tokenizer_loads <= self.tokenizer_load_failures:
            raise OSError(f"could not fetch tokenizer for {model_id}")
        return FakeTokenizer(dim=self.dim, fail_times=self.tokenize_failures)

    def load_model(self, model_id: str, option: LoadOption) -> FakeEmbeddingModel:
        self.model_load_attempts.append(option)
        if self.load_gate is not None:
            self.load_gate.wait(timeout=5.0)
        if self.working_options is not None and option not in self.working_options:
            raise RuntimeError(f"{option.describe()} unsupported for {model_id}")
        if self.model_load_attempts.count(option) <= self.model_load_failures:
            raise OSError(f"transient download failure for {option.describe()}")
        return FakeEmbeddingModel(option=option, dim=self.dim, fail_times=self.inference_failures)

    def tokenize(self, tokenizer: Any, texts: list[str]) -> Any:
        return tokenizer(texts, padding=True)

    def embed(self, model: Any, inputs: Any) -> NDArray[np.float32]:
        return model(inputs)

    def matmul(
        self, a: NDArray[np.float32], b: NDArray[np.float32]
    ) -> NDArray[np.float32]:
        self.matmul_calls += 1
        return np.matmul(a, b)
