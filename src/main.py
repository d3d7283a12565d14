"""Document RAG FastAPI application entry point.

Wires together all providers and services via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and owns the lifecycle of the background ingestion
worker pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import build_rag_config, load_config
from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.rag import RAGConfig
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.document_store.memory_store import MemoryDocumentStore
from src.providers.document_store.sqlite_store import SQLiteDocumentStore
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.services.file_analyzer import FileAnalyzer
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.worker_pool import IngestionWorkerPool
from src.services.performance_assessor import PerformanceAssessor
from src.services.query_service import QueryService
from src.services.response_synthesizer import ResponseSynthesizer
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_document_store(app_settings: Settings) -> IDocumentStore:
    """Select the document store backend named by ``DOCUMENT_STORE``."""
    kind = app_settings.document_store.lower()
    if kind == "memory":
        return MemoryDocumentStore()
    if kind == "sqlite":
        return SQLiteDocumentStore(db_path=app_settings.document_db_path)
    raise ConfigurationError(
        message=f"Unknown document store {app_settings.document_store!r}; expected 'memory' or 'sqlite'"
    )


def _build_embedding_provider(app_settings: Settings, rag_config: RAGConfig) -> IEmbeddingProvider:
    return OpenAIEmbeddingProvider(
        settings=app_settings,
        timeout_seconds=rag_config.timeout_seconds,
        model=rag_config.embedding_model,
    )


def _build_llm_provider(app_settings: Settings, rag_config: RAGConfig) -> ILLMProvider:
    return OpenAILLMProvider(
        settings=app_settings,
        timeout_seconds=rag_config.timeout_seconds,
        model=rag_config.generation_model,
    )


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    Raises :class:`ConfigurationError` if the RAG settings are invalid.
    """
    rag_config = build_rag_config(app_settings)

    # -- Providers --
    document_store = _build_document_store(app_settings)
    embedding_provider = _build_embedding_provider(app_settings, rag_config)
    llm = _build_llm_provider(app_settings, rag_config)

    # -- Ingestion --
    progress_tracker = ProgressTracker(max_tracked=app_settings.ingestion_tracked_statuses)
    ingestion_service = IngestionService(
        chunker=TextChunker(chunk_size=rag_config.chunk_size, overlap=rag_config.chunk_overlap),
        embedding_provider=embedding_provider,
        document_store=document_store,
        config=rag_config,
        progress_tracker=progress_tracker,
    )
    worker_pool = IngestionWorkerPool(
        service=ingestion_service,
        workers=app_settings.ingestion_workers,
        queue_size=app_settings.ingestion_queue_size,
    )

    # -- Query --
    query_service = QueryService(
        document_store=document_store,
        embedding_provider=embedding_provider,
        synthesizer=ResponseSynthesizer(llm=llm),
        assessor=PerformanceAssessor(llm=llm),
        config=rag_config,
    )

    # -- Provider registry for /health --
    provider_registry: dict[str, bool] = {
        "embedding": embedding_provider.is_available(),
        "llm": llm.is_available(),
        "document_store": True,
    }

    return {
        "rag_config": rag_config,
        "document_store": document_store,
        "embedding_provider": embedding_provider,
        "llm": llm,
        "file_analyzer": FileAnalyzer(llm=llm),
        "progress_tracker": progress_tracker,
        "ingestion_service": ingestion_service,
        "worker_pool": worker_pool,
        "query_service": query_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, drain workers on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    document_store = components["document_store"]
    if isinstance(document_store, SQLiteDocumentStore):
        await document_store.initialize()

    worker_pool: IngestionWorkerPool = components["worker_pool"]
    worker_pool.start()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        document_store=document_store.get_store_name(),
        embedding_model=components["rag_config"].embedding_model,
        generation_model=components["rag_config"].generation_model,
        model_services=settings.get_available_model_services(),
    )

    yield

    drain_timeout = config.get("ingestion", {}).get("drain_timeout_seconds", 10)
    await worker_pool.stop(drain_timeout=drain_timeout)
    _logger.info("app_shutdown", message="Ingestion workers stopped")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Document RAG API",
        version=_VERSION,
        description=(
            "Upload text documents, ingest them into an embedding store in the "
            "background, and ask questions answered from their most relevant "
            "fragments with a self-assessed quality score."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("api", {}).get("allowed_origins"))

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
