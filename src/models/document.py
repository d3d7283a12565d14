"""Document models shared with the document store.

The document record itself is owned by the document store; this service
only reads it and patches its ``processing_metadata`` once per ingestion.
Metadata is persisted with camelCase keys (``ragEnabled``,
``embeddingCount``, ...) so the stored mapping matches what the rest of
the application reads, while Python code uses snake_case attributes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProcessingMetadata(BaseModel):
    """Ingestion bookkeeping stored on every document.

    ``processed`` means "an ingestion attempt finished"; whether it
    succeeded is told by ``processing_error``.  While ``processed`` is
    ``False`` no embeddings of the document are visible to readers.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    rag_enabled: bool = False
    processed: bool = False
    processed_at: datetime | None = None
    embedding_count: int | None = Field(default=None, ge=0)
    processing_error: bool = False
    error_message: str | None = None

    def to_store(self) -> dict[str, Any]:
        """Serialise with the camelCase keys used by the document store."""
        return self.model_dump(mode="json", by_alias=True)

    def merged(self, patch: dict[str, Any]) -> ProcessingMetadata:
        """Return a copy with *patch* applied.

        *patch* may use camelCase or snake_case keys; unknown keys are
        rejected so a typo cannot silently drop a status flag.
        """
        data = self.to_store()
        for key, value in patch.items():
            camel = key if key in data else to_camel(key)
            if camel not in data:
                raise ValueError(f"Unknown processing metadata key: {key!r}")
            data[camel] = value
        return ProcessingMetadata.model_validate(data)

    @property
    def is_searchable(self) -> bool:
        """True once ingestion finished successfully."""
        return self.processed and not self.processing_error


class Document(BaseModel):
    """An uploaded document as seen by the RAG core."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document identifier assigned by the store.")
    name: str = Field(default="", description="Original file name.")
    content_type: str = Field(default="text/plain")
    size: int = Field(default=0, ge=0, description="Size of the raw content in bytes.")
    owner_id: str | None = Field(default=None, description="Owning user reference.")
    content: str = Field(default="", description="Raw text content.")
    summary: str | None = Field(default=None, description="Synchronous analysis summary.")
    category: str | None = Field(default=None, description="Synchronous analysis category.")
    created_at: datetime | None = None
    processing_metadata: ProcessingMetadata = Field(default_factory=ProcessingMetadata)
