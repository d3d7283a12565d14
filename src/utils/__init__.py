"""Utility modules for the document RAG service.

- **errors** -- domain exception hierarchy rooted at DocRAGError; each
  stage raises its own subclass so callers can handle failures
  granularly.
- **concurrency** -- bounded fan-out (``throttled_gather``) used to keep
  embedding calls under the configured concurrency.
- **logging** -- structlog setup with coloured console output in
  development and JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AnalysisParseError,
    AssessmentParseError,
    ChunkingError,
    ConfigurationError,
    DocRAGError,
    DocumentAlreadyExists,
    DocumentNotFound,
    EmbeddingServiceError,
    GenerationEmptyResponse,
    GenerationServiceError,
    IngestionFailed,
    VectorDimensionError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import bound_document_context, configure_logging, get_logger

__all__ = [
    "AnalysisParseError",
    "AssessmentParseError",
    "ChunkingError",
    "ConfigurationError",
    "DocRAGError",
    "DocumentAlreadyExists",
    "DocumentNotFound",
    "EmbeddingServiceError",
    "GenerationEmptyResponse",
    "GenerationServiceError",
    "IngestionFailed",
    "VectorDimensionError",
    "bound_document_context",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
