"""Orchestrator for one document's background ingestion.

State machine per document::

    UPLOADED → CHUNKING → EMBEDDING → PERSISTING → DONE
                                                 ↘ FAILED

The :class:`IngestionService` coordinates three injected collaborators
(chunker, embedding provider, document store) without any of them knowing
about each other:

    1. TextChunker -- splits the document text into overlapping fragments
    2. IEmbeddingProvider -- one vector per fragment, bounded concurrency
    3. IDocumentStore -- all records written in one atomic batch
    4. Metadata flip -- ``processed: true`` is written *last*, after the
       batch is committed, so readers never see a half-ingested document

Failures never propagate to the caller (whoever triggered the upload has
already moved on).  They are recorded on the document as
``processed: true, processingError: true, errorMessage: <cause>`` and are
terminal: nothing here retries.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from src.models.rag import EmbeddingRecord, IngestionOutcome, IngestionPhase, RAGConfig
from src.services.ingestion.chunker import TextChunker
from src.utils.concurrency import throttled_gather
from src.utils.errors import (
    DocRAGError,
    DocumentNotFound,
    EmbeddingServiceError,
    IngestionFailed,
)
from src.utils.logging import bound_document_context, get_logger

if TYPE_CHECKING:
    from src.interfaces.document_store import IDocumentStore
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.pipeline.progress_tracker import ProgressTracker

logger: structlog.BoundLogger = get_logger(__name__)


class IngestionService:
    """Runs the chunk -> embed -> persist state machine for one document.

    Parameters
    ----------
    chunker:
        Splits raw text into overlapping fragments.
    embedding_provider:
        Generates one vector per fragment.
    document_store:
        Persists embedding records and document metadata.
    config:
        Validated RAG configuration (embedding model, concurrency).
    progress_tracker:
        Optional tracker notified on every phase transition.
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        config: RAGConfig,
        progress_tracker: ProgressTracker | None = None,
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._document_store = document_store
        self._config = config
        self._progress_tracker = progress_tracker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest_document(self, document_id: str, text: str) -> IngestionOutcome:
        """Ingest *text* as the fragments of *document_id*.

        Never raises for ingestion failures; the returned outcome and the
        document's metadata both record what happened.
        """
        start = time.monotonic()
        with bound_document_context(document_id):
            logger.info("ingestion_started", chars=len(text))
            await self._advance(document_id, IngestionPhase.UPLOADED, "queued")
            try:
                count = await self._run(document_id, text)
            except IngestionFailed as exc:
                return await self._record_failure(document_id, exc, start)

            duration = round(time.monotonic() - start, 3)
            logger.info("ingestion_complete", embedding_count=count, duration_seconds=duration)
            return IngestionOutcome(
                document_id=document_id,
                phase=IngestionPhase.DONE,
                embedding_count=count,
                duration_seconds=duration,
            )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run(self, document_id: str, text: str) -> int:
        phase = IngestionPhase.UPLOADED
        persisted = False
        try:
            # The record must exist before any work is spent on it.
            await self._document_store.get_document(document_id)

            phase = IngestionPhase.CHUNKING
            await self._advance(document_id, phase)
            fragments = self._chunker.chunk(text)

            phase = IngestionPhase.EMBEDDING
            await self._advance(document_id, phase, f"{len(fragments)} fragments")
            vectors = await self._embed_all(fragments)

            phase = IngestionPhase.PERSISTING
            await self._advance(document_id, phase)
            records = [
                EmbeddingRecord(
                    id=str(uuid.uuid4()),
                    document_id=document_id,
                    ordinal=ordinal,
                    text=fragment,
                    vector=vector,
                    model=self._config.embedding_model,
                )
                for ordinal, (fragment, vector) in enumerate(zip(fragments, vectors))
            ]
            await self._document_store.put_embeddings(document_id, records)
            persisted = True

            await self._document_store.update_document_metadata(
                document_id,
                {
                    "processed": True,
                    "processed_at": datetime.now(tz=timezone.utc),  # noqa: UP017
                    "embedding_count": len(records),
                    "processing_error": False,
                    "error_message": None,
                },
            )
        except Exception as exc:
            if persisted:
                await self._discard_embeddings(document_id)
            raise IngestionFailed(
                message=getattr(exc, "message", None) or str(exc) or type(exc).__name__,
                provider_name=getattr(exc, "provider_name", None),
                phase=phase.value,
                cause=exc,
            ) from exc

        await self._advance(document_id, IngestionPhase.DONE, f"{len(records)} embeddings")
        return len(records)

    async def _embed_all(self, fragments: list[str]) -> list[list[float]]:
        """Embed every fragment with bounded concurrency; fail on the first error."""
        model = self._config.embedding_model
        vectors = await throttled_gather(
            [lambda f=fragment: self._embedding_provider.embed(f, model=model) for fragment in fragments],
            limit=self._config.embedding_concurrency,
        )

        dimensions = {len(v) for v in vectors}
        if len(dimensions) > 1:
            raise EmbeddingServiceError(
                message=f"Embedding service returned mixed dimensions {sorted(dimensions)}",
                provider_name=self._embedding_provider.get_provider_name(),
            )
        return vectors

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    async def _record_failure(
        self, document_id: str, exc: IngestionFailed, start: float
    ) -> IngestionOutcome:
        duration = round(time.monotonic() - start, 3)
        logger.error(
            "ingestion_failed",
            phase=exc.phase,
            error_type=type(exc.cause).__name__ if exc.cause else None,
            error=str(exc),
        )

        try:
            await self._document_store.update_document_metadata(
                document_id,
                {
                    "processed": True,
                    "processed_at": datetime.now(tz=timezone.utc),  # noqa: UP017
                    "processing_error": True,
                    "error_message": str(exc),
                    "embedding_count": None,
                },
            )
        except DocumentNotFound:
            # Deleted mid-run: nothing left to record on.
            logger.warning("ingestion_target_missing")
        except DocRAGError as store_exc:
            logger.error("ingestion_failure_not_recorded", error=str(store_exc))

        await self._advance(document_id, IngestionPhase.FAILED, str(exc))
        return IngestionOutcome(
            document_id=document_id,
            phase=IngestionPhase.FAILED,
            error_message=str(exc),
            duration_seconds=duration,
        )

    async def _discard_embeddings(self, document_id: str) -> None:
        try:
            removed = await self._document_store.delete_embeddings(document_id)
            logger.warning("ingestion_embeddings_discarded", removed=removed)
        except DocRAGError as exc:
            logger.error("ingestion_discard_failed", error=str(exc))

    async def _advance(self, document_id: str, phase: IngestionPhase, message: str = "") -> None:
        if self._progress_tracker is not None:
            await self._progress_tracker.update(document_id, phase, message)
