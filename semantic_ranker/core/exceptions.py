"""
Semantic Ranker - Custom Exceptions

Anti-Patterns Avoided:
- Exception Shadowing: custom namespaced exceptions rooted at SemanticRankerError
  instead of reusing builtins like RuntimeError or ConnectionError
"""


class SemanticRankerError(Exception):
    """Base exception for Semantic Ranker.

    All custom exceptions inherit from this base class.
    """
    pass


class ModelLoadFailedError(SemanticRankerError):
    """Raised when every model load configuration has been exhausted.

    Terminal until the caller issues a new initialize() call.
    """
    pass


class ModelNotReadyError(SemanticRankerError):
    """Raised when the model is used before initialization completed."""
    pass


class InferenceFailedError(SemanticRankerError):
    """Raised when tokenization or inference fails after all retries."""
    pass


class QueryInProgressError(SemanticRankerError):
    """Raised when a session already has a query being processed."""
    pass


class DocumentNotFoundError(SemanticRankerError):
    """Raised when a document index is out of range."""

    def __init__(self, index: int) -> None:
        super().__init__(f"No document at index {index}")
        self.index = index


class ConfigurationError(SemanticRankerError):
    """Raised when configuration is invalid or missing."""
    pass


class UnsupportedLoadOptionError(SemanticRankerError):
    """Raised when the runtime cannot honour a precision/device combination."""
    pass
