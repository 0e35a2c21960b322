"""
Semantic Ranker - Application Configuration

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Environment variable prefix SR_ for Semantic Ranker

Anti-Patterns Avoided:
- Hardcoded model identifiers and retry constants scattered across modules
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL_ID: str = "google/embeddinggemma-300m"
DEFAULT_QUERY_PREFIX: str = "task: search result | query: "
DEFAULT_DOCUMENT_PREFIX: str = "title: none | text: "
DEFAULT_DOCUMENTS_KEY: str = "embedding_documents"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables with SR_ prefix.
    Example: SR_MODEL_ID=google/embeddinggemma-300m, SR_MAX_RETRIES=5
    """

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8090

    # Application metadata
    service_name: str = "semantic-ranker"
    version: str = "0.1.0"
    environment: str = "development"

    # Logging configuration
    log_level: str = "INFO"
    log_json: bool = True

    # Model configuration
    model_id: str = DEFAULT_MODEL_ID
    model_cache_dir: str | None = None
    # HuggingFace access token; required for gated checkpoints such as the default
    hf_token: str | None = None
    autoload_model: bool = True
    # Ordered "<precision>/<device>" labels, e.g. ["q8/cpu", "fp32/cpu"];
    # None sweeps every default candidate
    load_options: list[str] | None = None

    # Retry policy (base delay in seconds)
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0.0)

    # Task prefixes fed to the embedding model
    query_prefix: str = DEFAULT_QUERY_PREFIX
    document_prefix: str = DEFAULT_DOCUMENT_PREFIX

    # Document persistence
    documents_path: str = "./data/documents.json"
    documents_key: str = DEFAULT_DOCUMENTS_KEY

    # Tracing configuration
    tracing_enabled: bool = False
    tracing_console_export: bool = True

    model_config = SettingsConfigDict(
        env_prefix="SR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance with values from environment
    """
    return Settings()
