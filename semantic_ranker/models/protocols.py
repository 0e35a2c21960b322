"""
Semantic Ranker - Model Runtime Protocol

Capability interface between the orchestration core and the pretrained-model
runtime. The lifecycle manager and query runner depend only on this protocol,
so tests substitute FakeModelRuntime without downloading any weights.

Patterns Applied:
- Protocol typing for duck typing (structural subtyping, no inheritance)
- Repository Pattern + FakeClient for testing

Anti-Patterns Avoided:
- Tight coupling to concrete implementations
"""

from typing import Any, Protocol

import numpy as np
import numpy.typing as npt

from semantic_ranker.models.constants import LoadOption


class ModelRuntimeProtocol(Protocol):
    """Protocol for the pretrained-model runtime.

    All methods are blocking; callers run them off the event loop.
    """

    def load_tokenizer(self, model_id: str) -> Any:
        """Load the tokenizer for ``model_id``."""
        ...

    def load_model(self, model_id: str, option: LoadOption) -> Any:
        """Load the model for ``model_id`` with the given precision/device."""
        ...

    def tokenize(self, tokenizer: Any, texts: list[str]) -> Any:
        """Tokenize ``texts`` as one padded batch."""
        ...

    def embed(self, model: Any, inputs: Any) -> npt.NDArray[np.float32]:
        """Return one sentence embedding per batch row, shape (n, dim)."""
        ...

    def matmul(
        self, a: npt.NDArray[np.float32], b: npt.NDArray[np.float32]
    ) -> npt.NDArray[np.float32]:
        """Batch matrix multiply used for the similarity matrix."""
        ...
