"""In-memory document store.

Dict-backed implementation of :class:`IDocumentStore` for development,
tests and single-process deployments.  A single ``asyncio.Lock`` guards
every mutation, so a batch of embedding records becomes visible in one
step and metadata patches never interleave.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import Document
from src.models.rag import EmbeddingRecord
from src.utils.errors import DocumentAlreadyExists, DocumentNotFound

logger = structlog.get_logger(logger_name=__name__)


class MemoryDocumentStore(IDocumentStore):
    """Document store kept entirely in process memory."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._embeddings: dict[str, list[EmbeddingRecord]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._lock:
            stored = document.model_copy(
                update={
                    "id": document.id or str(uuid.uuid4()),
                    "created_at": document.created_at or datetime.now(tz=timezone.utc),  # noqa: UP017
                }
            )
            if stored.id in self._documents:
                raise DocumentAlreadyExists(
                    message=f"Document {stored.id} already exists",
                    provider_name=self.get_store_name(),
                    document_id=stored.id,
                )
            self._documents[stored.id] = stored
        logger.debug("document_created", document_id=stored.id, store="memory")
        return stored

    async def get_document(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFound(
                message=f"Document {document_id} not found",
                provider_name=self.get_store_name(),
                document_id=document_id,
            )
        return document

    async def list_documents(self, owner_id: str | None = None) -> list[Document]:
        documents = list(self._documents.values())
        if owner_id is not None:
            documents = [d for d in documents if d.owner_id == owner_id]
        return documents

    async def update_document_metadata(
        self, document_id: str, patch: dict[str, Any]
    ) -> Document:
        async with self._lock:
            document = await self.get_document(document_id)
            updated = document.model_copy(
                update={"processing_metadata": document.processing_metadata.merged(patch)}
            )
            self._documents[document_id] = updated
        return updated

    async def delete_document(self, document_id: str) -> None:
        async with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFound(
                    message=f"Document {document_id} not found",
                    provider_name=self.get_store_name(),
                    document_id=document_id,
                )
            del self._documents[document_id]
            removed = self._embeddings.pop(document_id, [])
        logger.info("document_deleted", document_id=document_id, embeddings_removed=len(removed))

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def put_embeddings(
        self, document_id: str, records: Sequence[EmbeddingRecord]
    ) -> int:
        async with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFound(
                    message=f"Document {document_id} not found",
                    provider_name=self.get_store_name(),
                    document_id=document_id,
                )
            batch = sorted(records, key=lambda r: r.ordinal)
            # Swap the whole list in one assignment.
            self._embeddings[document_id] = [*self._embeddings.get(document_id, []), *batch]
        return len(batch)

    async def get_embeddings(self, document_ids: Sequence[str]) -> list[EmbeddingRecord]:
        results: list[EmbeddingRecord] = []
        for document_id in dict.fromkeys(document_ids):
            document = self._documents.get(document_id)
            if document is None or not document.processing_metadata.is_searchable:
                continue
            results.extend(self._embeddings.get(document_id, []))
        return results

    async def delete_embeddings(self, document_id: str) -> int:
        async with self._lock:
            removed = self._embeddings.pop(document_id, [])
        return len(removed)

    def get_store_name(self) -> str:
        return "memory"
