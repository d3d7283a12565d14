"""Document RAG API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    IngestionStatusResponse,
    QueryRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "DocumentListResponse",
    "ErrorResponse",
    "HealthResponse",
    "IngestionStatusResponse",
    "QueryRequest",
]
