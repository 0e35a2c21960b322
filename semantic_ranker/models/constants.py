"""
Semantic Ranker - Model Load Options

Precision x device candidates swept by the model lifecycle manager.
CPU is the portable baseline backend, GPU the accelerated one.

Anti-Patterns Avoided:
- S1192: candidate order defined once, not re-listed at call sites
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from semantic_ranker.core.exceptions import ConfigurationError


class Precision(str, Enum):
    """Numeric precision of the loaded model weights."""

    Q8 = "q8"
    Q4 = "q4"
    FP32 = "fp32"


class Device(str, Enum):
    """Compute backend the model runs on."""

    CPU = "cpu"
    GPU = "gpu"


@dataclass(frozen=True)
class LoadOption:
    """One candidate configuration for loading the embedding model."""

    precision: Precision
    device: Device

    def describe(self) -> str:
        """Short label for logs, e.g. ``q8/cpu``."""
        return f"{self.precision.value}/{self.device.value}"

    @classmethod
    def parse(cls, label: str) -> LoadOption:
        """Inverse of describe().

        Raises:
            ConfigurationError: If the label is not ``<precision>/<device>``
        """
        precision, _, device = label.strip().lower().partition("/")
        try:
            return cls(Precision(precision), Device(device))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid load option {label!r}, expected e.g. 'q8/cpu' or 'fp32/gpu'"
            ) from e


def parse_load_options(labels: Iterable[str]) -> tuple[LoadOption, ...]:
    """Parse configured labels, keeping their order."""
    return tuple(LoadOption.parse(label) for label in labels)


# Highest-compatibility configurations first: every CPU tier before any GPU tier.
# torch has no 4-bit CPU kernels, so q4/cpu always fails; the retry policy does
# not look at causes, which costs the full backoff (1 s + 2 s at the defaults)
# on every cold start. Drop it with SR_LOAD_OPTIONS where that matters.
DEFAULT_LOAD_OPTIONS: tuple[LoadOption, ...] = (
    LoadOption(Precision.Q8, Device.CPU),
    LoadOption(Precision.Q4, Device.CPU),
    LoadOption(Precision.FP32, Device.CPU),
    LoadOption(Precision.Q8, Device.GPU),
    LoadOption(Precision.Q4, Device.GPU),
    LoadOption(Precision.FP32, Device.GPU),
)
