"""Abstract base class for the document store.

The document store is the persistence collaborator of the RAG core: it
owns documents (and their processing metadata) and the embedding records
derived from them.

Visibility contract
-------------------
``put_embeddings`` is all-or-nothing for one document.
``get_embeddings`` returns records only for documents whose metadata says
``processed`` and not ``processing_error``.  Together with the ingestion
orchestrator writing embeddings *before* flipping ``processed``, readers
can never see a half-ingested document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from src.models.document import Document
from src.models.rag import EmbeddingRecord


# Concrete implementations: MemoryDocumentStore, SQLiteDocumentStore
# Located in: src/providers/document_store/
class IDocumentStore(ABC):
    """Contract for document and embedding persistence."""

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Persist a new document and return it as stored.

        An empty ``id`` is replaced with a fresh UUID.

        Raises
        ------
        src.utils.errors.DocumentAlreadyExists
            If a document with the same id is already stored.
        """

    @abstractmethod
    async def get_document(self, document_id: str) -> Document:
        """Return the document with *document_id*.

        Raises
        ------
        src.utils.errors.DocumentNotFound
            If no such document exists.
        """

    @abstractmethod
    async def list_documents(self, owner_id: str | None = None) -> list[Document]:
        """Return all documents, optionally filtered by owner, oldest first."""

    @abstractmethod
    async def update_document_metadata(
        self, document_id: str, patch: dict[str, Any]
    ) -> Document:
        """Merge *patch* into the document's processing metadata.

        *patch* keys may be camelCase (store format) or snake_case.

        Raises
        ------
        src.utils.errors.DocumentNotFound
            If the document no longer exists.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        """Delete a document and cascade to its embedding records.

        Raises
        ------
        src.utils.errors.DocumentNotFound
            If no such document exists.
        """

    @abstractmethod
    async def put_embeddings(
        self, document_id: str, records: Sequence[EmbeddingRecord]
    ) -> int:
        """Atomically write all *records* for *document_id*.

        Either every record is persisted or none is.  Returns the number of
        records written.

        Raises
        ------
        src.utils.errors.DocumentNotFound
            If the document no longer exists.
        """

    @abstractmethod
    async def get_embeddings(self, document_ids: Sequence[str]) -> list[EmbeddingRecord]:
        """Return the visible embedding records of *document_ids*.

        An empty id list returns an empty list (never "all documents").
        Records are ordered by the position of their document in
        *document_ids*, then by ``ordinal``.
        """

    @abstractmethod
    async def delete_embeddings(self, document_id: str) -> int:
        """Remove every embedding record of *document_id*; return how many."""

    @abstractmethod
    def get_store_name(self) -> str:
        """Return a short identifier, e.g. ``"memory"`` or ``"sqlite"``."""
