"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
2. A ``.env`` file in the project root (local development only)

Field names map to upper-cased env vars automatically, so
``rag_top_k`` is set with ``RAG_TOP_K``.  Defaults apply when neither
source provides a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Document RAG service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Remote model services ===
    # Empty key = "not configured"; providers report is_available() False.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, vLLM, ...)
    openai_embedding_model: str = "text-embedding-3-large"
    openai_text_model: str = "gpt-4o"

    # === RAG core ===
    rag_top_k: int = 3
    rag_timeout_ms: int = 30000
    rag_chunk_size: int = 1000  # characters
    rag_chunk_overlap: int = 200  # words
    rag_embedding_concurrency: int = 4

    # === Background ingestion ===
    ingestion_workers: int = 2
    ingestion_queue_size: int = 100
    ingestion_tracked_statuses: int = 1000

    # === Document store ===
    document_store: str = "memory"  # "memory" | "sqlite"
    document_db_path: str = "data/documents.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_model_services(self) -> list[str]:
        """Return the remote model services that have credentials configured."""
        services: list[str] = []
        if self.openai_api_key:
            services.append("openai")
        return services
