"""Integration tests for background ingestion against both document stores.

Real chunker, stores and orchestrator; only the embedding service is faked.
"""

from __future__ import annotations

import pytest

from src.models.rag import IngestionPhase, RAGConfig
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.document_store.memory_store import MemoryDocumentStore
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.utils.errors import ConfigurationError
from tests.conftest import FakeEmbeddingProvider, one_char_words, seed_document

_TEXT = (
    "Refunds are issued within thirty days of purchase. "
    "Shipping to most countries takes five business days. "
    "Support is available by email around the clock. "
    "Gift cards never expire and cannot be exchanged for cash."
)


def _service(
    store,
    config: RAGConfig,
    embedding_provider: FakeEmbeddingProvider,
    tracker: ProgressTracker | None = None,
) -> IngestionService:
    return IngestionService(
        chunker=TextChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap),
        embedding_provider=embedding_provider,
        document_store=store,
        config=config,
        progress_tracker=tracker,
    )


class TestSuccessfulIngestion:
    @pytest.mark.asyncio
    async def test_fragments_become_searchable_records(
        self, document_store, rag_config, embedding_provider
    ) -> None:
        document = await seed_document(document_store, _TEXT)
        service = _service(document_store, rag_config, embedding_provider)

        outcome = await service.ingest_document(document.id, _TEXT)

        expected = TextChunker(chunk_size=60, overlap=3).chunk(_TEXT)
        assert outcome.phase is IngestionPhase.DONE
        assert outcome.embedding_count == len(expected) > 1

        records = await document_store.get_embeddings([document.id])
        assert [r.text for r in records] == expected
        assert [r.ordinal for r in records] == list(range(len(expected)))
        assert {r.model for r in records} == {"fake-embedding"}

        metadata = (await document_store.get_document(document.id)).processing_metadata
        assert metadata.processed is True
        assert metadata.processing_error is False
        assert metadata.embedding_count == len(expected)
        assert metadata.processed_at is not None
        assert metadata.error_message is None

    @pytest.mark.asyncio
    async def test_six_hundred_short_words_make_two_overlapping_fragments(
        self, document_store, embedding_provider
    ) -> None:
        config = RAGConfig.create(embedding_model="fake-embedding", chunk_size=1000, chunk_overlap=200)
        text = one_char_words(600)
        document = await seed_document(document_store, text)

        outcome = await _service(document_store, config, embedding_provider).ingest_document(
            document.id, text
        )

        assert outcome.embedding_count == 2
        first, second = (r.text.split() for r in await document_store.get_embeddings([document.id]))
        assert second[:200] == first[-200:]

    @pytest.mark.asyncio
    async def test_empty_text_is_processed_with_zero_embeddings(
        self, document_store, rag_config, embedding_provider
    ) -> None:
        document = await seed_document(document_store, "")

        outcome = await _service(document_store, rag_config, embedding_provider).ingest_document(
            document.id, "   "
        )

        assert outcome.phase is IngestionPhase.DONE
        assert outcome.embedding_count == 0
        assert embedding_provider.calls == []
        metadata = (await document_store.get_document(document.id)).processing_metadata
        assert metadata.processed is True
        assert metadata.embedding_count == 0

    @pytest.mark.asyncio
    async def test_phases_are_reported_in_order(
        self, memory_store, rag_config, embedding_provider
    ) -> None:
        tracker = ProgressTracker()
        phases: list[IngestionPhase] = []
        document = await seed_document(memory_store, _TEXT)
        tracker.register_listener(document.id, lambda d, p, m: phases.append(p))

        await _service(memory_store, rag_config, embedding_provider, tracker).ingest_document(
            document.id, _TEXT
        )

        assert phases == [
            IngestionPhase.UPLOADED,
            IngestionPhase.CHUNKING,
            IngestionPhase.EMBEDDING,
            IngestionPhase.PERSISTING,
            IngestionPhase.DONE,
        ]
        assert tracker.get_status(document.id)["phase"] == "DONE"

    @pytest.mark.asyncio
    async def test_embedding_calls_are_bounded(self, memory_store, rag_config) -> None:
        provider = FakeEmbeddingProvider(delay=0.01)
        document = await seed_document(memory_store, _TEXT)

        outcome = await _service(memory_store, rag_config, provider).ingest_document(
            document.id, _TEXT
        )

        assert outcome.embedding_count > rag_config.embedding_concurrency
        assert provider.max_in_flight == rag_config.embedding_concurrency


class TestFailedIngestion:
    @pytest.mark.asyncio
    async def test_embedding_outage_marks_document_failed(
        self, document_store, rag_config
    ) -> None:
        provider = FakeEmbeddingProvider(fail_on="Shipping")
        tracker = ProgressTracker()
        document = await seed_document(document_store, _TEXT)

        outcome = await _service(document_store, rag_config, provider, tracker).ingest_document(
            document.id, _TEXT
        )

        assert outcome.phase is IngestionPhase.FAILED
        assert outcome.error_message == "[fake_embedding] simulated embedding outage"

        metadata = (await document_store.get_document(document.id)).processing_metadata
        assert metadata.processed is True
        assert metadata.processing_error is True
        assert metadata.embedding_count is None
        assert metadata.error_message == "[fake_embedding] simulated embedding outage"

        assert await document_store.get_embeddings([document.id]) == []
        assert await document_store.delete_embeddings(document.id) == 0
        assert tracker.get_status(document.id)["phase"] == "FAILED"

    @pytest.mark.asyncio
    async def test_missing_document_fails_without_raising(
        self, document_store, rag_config, embedding_provider
    ) -> None:
        outcome = await _service(document_store, rag_config, embedding_provider).ingest_document(
            "no-such-document", _TEXT
        )

        assert outcome.phase is IngestionPhase.FAILED
        assert "no-such-document" in outcome.error_message
        assert embedding_provider.calls == []

    @pytest.mark.asyncio
    async def test_failure_after_persist_discards_embeddings(
        self, rag_config, embedding_provider
    ) -> None:
        class _FlakyStore(MemoryDocumentStore):
            """Fails the first metadata update, i.e. the success flip."""

            def __init__(self) -> None:
                super().__init__()
                self.failed_once = False

            async def update_document_metadata(self, document_id, patch):
                if not self.failed_once:
                    self.failed_once = True
                    raise ConfigurationError(message="metadata write rejected", provider_name="memory")
                return await super().update_document_metadata(document_id, patch)

        store = _FlakyStore()
        document = await seed_document(store, _TEXT)

        outcome = await _service(store, rag_config, embedding_provider).ingest_document(
            document.id, _TEXT
        )

        assert outcome.phase is IngestionPhase.FAILED
        assert outcome.error_message == "[memory] metadata write rejected"
        assert await store.delete_embeddings(document.id) == 0
        metadata = (await store.get_document(document.id)).processing_metadata
        assert metadata.processing_error is True
        assert await store.get_embeddings([document.id]) == []
