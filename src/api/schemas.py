"""Pydantic request/response schemas for the document RAG API.

Defines the public contract of every REST endpoint: document upload and
listing, ingestion status, querying, and health.  Request schemas end
with ``Request``, response schemas with ``Response``.  Domain models
(:class:`Document`, :class:`QueryResult`) are returned directly where the
wire shape is the model itself.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.document import Document


class DocumentListResponse(BaseModel):
    """All stored documents, oldest first."""

    documents: list[Document]
    total: int


class IngestionStatusResponse(BaseModel):
    """Background ingestion progress of one document.

    ``phase`` is ``None`` when this process never tracked the document
    (e.g. it was ingested before a restart); the stored metadata is still
    authoritative.
    """

    document_id: str
    phase: str | None = None
    message: str = ""
    updated_at: str | None = None
    metadata: dict[str, Any] = Field(description="Stored processing metadata (camelCase keys).")


class QueryRequest(BaseModel):
    """A question asked against a chosen set of documents."""

    query: str = Field(min_length=1, max_length=2000)
    document_ids: list[str] = Field(
        default_factory=list,
        description="Documents whose fragments are candidates. Empty means none.",
    )
    top_k: int | None = Field(default=None, ge=1, le=50)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    document_store: str
    models: dict[str, str]
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
