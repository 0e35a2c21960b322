"""
Semantic Ranker - Sentence-Transformers Runtime

Implements ModelRuntimeProtocol on top of sentence-transformers + torch.

The model handle is the checkpoint's full SentenceTransformer module
pipeline (transformer, pooling, any Dense projections, normalisation), so
``sentence_embedding`` is exactly what the checkpoint defines. The tokenizer
is loaded separately with AutoTokenizer from the same repository.

Precision handling:
- fp32: plain float32 weights on the selected device
- q8 on CPU: torch dynamic int8 quantization of Linear layers
- q4 on CPU: not supported, raises so the fallback sweep moves on
- q8/q4 on GPU: bitsandbytes quantization through BitsAndBytesConfig

Gated checkpoints (e.g. google/embeddinggemma-300m) need a HuggingFace
access token; it is passed to both loads.

Anti-Patterns Avoided:
- Import heavy libraries at module load (sentence-transformers imported lazily)
- Exception shadowing (UnsupportedLoadOptionError, not RuntimeError)
"""

from __future__ import annotations

from typing import Any

import numpy as np
import torch
from numpy.typing import NDArray

from semantic_ranker.core.exceptions import UnsupportedLoadOptionError
from semantic_ranker.core.logging import get_logger
from semantic_ranker.models.constants import Device, LoadOption, Precision

logger = get_logger(__name__)


class SentenceTransformerRuntime:
    """Model runtime backed by a SentenceTransformer and its AutoTokenizer.

    Attributes:
        cache_dir: Optional HuggingFace cache directory
        token: Optional HuggingFace access token for gated checkpoints
    """

    def __init__(self, cache_dir: str | None = None, token: str | None = None) -> None:
        self.cache_dir = cache_dir
        self.token = token

    def load_tokenizer(self, model_id: str) -> Any:
        from transformers import AutoTokenizer

        logger.info("loading_tokenizer", model_id=model_id)
        return AutoTokenizer.from_pretrained(  # type: ignore[no-untyped-call]
            model_id, cache_dir=self.cache_dir, token=self.token
        )

    def load_model(self, model_id: str, option: LoadOption) -> Any:
        """Load ``model_id`` configured for ``option``.

        Raises:
            UnsupportedLoadOptionError: If the option cannot run on this host
        """
        logger.info("loading_model", model_id=model_id, option=option.describe())

        if option.device is Device.GPU:
            model = self._load_gpu_model(model_id, option.precision)
        else:
            model = self._load_cpu_model(model_id, option.precision)

        model.eval()
        return model

    def _sentence_transformer(
        self, model_id: str, device: str, model_kwargs: dict[str, Any]
    ) -> Any:
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(
            model_id,
            device=device,
            cache_folder=self.cache_dir,
            token=self.token,
            model_kwargs=model_kwargs,
        )

    def _load_cpu_model(self, model_id: str, precision: Precision) -> Any:
        if precision is Precision.Q4:
            raise UnsupportedLoadOptionError("4-bit weights are not supported on cpu")

        model = self._sentence_transformer(
            model_id, "cpu", {"torch_dtype": torch.float32}
        )
        if precision is Precision.Q8:
            model = torch.ao.quantization.quantize_dynamic(
                model, {torch.nn.Linear}, dtype=torch.qint8
            )
        return model

    def _load_gpu_model(self, model_id: str, precision: Precision) -> Any:
        from transformers import BitsAndBytesConfig

        if not torch.cuda.is_available():
            raise UnsupportedLoadOptionError("No CUDA device available")

        if precision is Precision.FP32:
            return self._sentence_transformer(
                model_id, "cuda", {"torch_dtype": torch.float32}
            )

        quantization_config = BitsAndBytesConfig(
            load_in_8bit=precision is Precision.Q8,
            load_in_4bit=precision is Precision.Q4,
        )
        return self._sentence_transformer(
            model_id,
            "cuda",
            {"quantization_config": quantization_config, "device_map": "cuda"},
        )

    def tokenize(self, tokenizer: Any, texts: list[str]) -> Any:
        return tokenizer(texts, padding=True, truncation=True, return_tensors="pt")

    def embed(self, model: Any, inputs: Any) -> NDArray[np.float32]:
        """Run the module pipeline and return ``sentence_embedding`` rows."""
        device = getattr(model, "device", torch.device("cpu"))
        features = {name: tensor.to(device) for name, tensor in inputs.items()}

        with torch.inference_mode():
            outputs = model(features)

        # Already unit length when the pipeline ends in Normalize
        embeddings = torch.nn.functional.normalize(
            outputs["sentence_embedding"].float(), p=2, dim=1
        )
        return embeddings.cpu().numpy().astype(np.float32)

    def matmul(
        self, a: NDArray[np.float32], b: NDArray[np.float32]
    ) -> NDArray[np.float32]:
        return np.matmul(a, b)
