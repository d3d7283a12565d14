"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

:func:`load_config` reads the YAML file first, then deep-merges the
environment-derived values on top::

    base      = {"ingestion": {"drain_timeout_seconds": 10}}
    overrides = {"ingestion": {"workers": 4}}
    result    = {"ingestion": {"drain_timeout_seconds": 10, "workers": 4}}

:func:`build_rag_config` turns the flat :class:`Settings` into the
validated :class:`RAGConfig` used by the orchestrators.
"""

from pathlib import Path

import yaml

from src.config.settings import Settings
from src.models.rag import RAGConfig


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "models": {
            "embedding": settings.openai_embedding_model,
            "generation": settings.openai_text_model,
            "base_url": settings.openai_base_url,
            "available_services": settings.get_available_model_services(),
        },
        "rag": {
            "top_k": settings.rag_top_k,
            "timeout_ms": settings.rag_timeout_ms,
            "chunk_size": settings.rag_chunk_size,
            "chunk_overlap": settings.rag_chunk_overlap,
            "embedding_concurrency": settings.rag_embedding_concurrency,
        },
        "ingestion": {
            "workers": settings.ingestion_workers,
            "queue_size": settings.ingestion_queue_size,
            "tracked_statuses": settings.ingestion_tracked_statuses,
        },
        "document_store": {
            "kind": settings.document_store,
            "db_path": settings.document_db_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_rag_config(settings: Settings) -> RAGConfig:
    """Validate the RAG-related settings into a :class:`RAGConfig`.

    Raises:
        ConfigurationError: If any value is out of range.
    """
    return RAGConfig.create(
        embedding_model=settings.openai_embedding_model,
        generation_model=settings.openai_text_model,
        top_k=settings.rag_top_k,
        timeout_ms=settings.rag_timeout_ms,
        chunk_size=settings.rag_chunk_size,
        chunk_overlap=settings.rag_chunk_overlap,
        embedding_concurrency=settings.rag_embedding_concurrency,
    )


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
