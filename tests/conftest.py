"""Shared pytest fixtures for the document RAG test suite."""

from __future__ import annotations

import asyncio
import hashlib
import re
import sys
from collections.abc import Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.document import Document, ProcessingMetadata
from src.models.rag import RAGConfig
from src.providers.document_store.memory_store import MemoryDocumentStore
from src.providers.document_store.sqlite_store import SQLiteDocumentStore
from src.utils.errors import EmbeddingServiceError
from src.utils.logging import configure_logging

_DIMENSION = 32
_WORD = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words embedding provider.

    Each lower-cased word increments one hashed bucket, so texts sharing
    words have a high cosine similarity.  ``vectors`` pins exact vectors
    for specific texts; ``fail_on`` makes any text containing that
    substring raise :class:`EmbeddingServiceError`.
    """

    def __init__(
        self,
        dimension: int = _DIMENSION,
        vectors: dict[str, list[float]] | None = None,
        fail_on: str | None = None,
        delay: float = 0.0,
    ) -> None:
        self.dimension = dimension
        self.vectors = dict(vectors or {})
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[tuple[str, str | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str, model: str | None = None) -> list[float]:
        self.calls.append((text, model))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_on is not None and self.fail_on in text:
                raise EmbeddingServiceError(
                    message="simulated embedding outage",
                    provider_name=self.get_provider_name(),
                )
            if text in self.vectors:
                return list(self.vectors[text])
            return self._bag_of_words(text)
        finally:
            self.in_flight -= 1

    def _bag_of_words(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        return vector

    def get_default_model(self) -> str:
        return "fake-embedding"

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


def make_llm(*responses: str | BaseException) -> MagicMock:
    """Build a mock ILLMProvider whose ``complete`` returns *responses* in order."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.get_model.return_value = "mock-model"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(side_effect=list(responses))
    return mock


ASSESSMENT_JSON = (
    '{"contextRelevance": 0.8, "responseQuality": 0.7, '
    '"suggestedImprovements": ["Cite the fragment numbers."]}'
)


async def seed_document(
    store,
    text: str = "",
    *,
    name: str = "doc.txt",
    rag_enabled: bool = True,
) -> Document:
    """Create a document in *store* the way the upload route does."""
    return await store.create_document(
        Document(
            id="",
            name=name,
            size=len(text.encode("utf-8")),
            content=text,
            processing_metadata=ProcessingMetadata(rag_enabled=rag_enabled),
        )
    )


def one_char_words(count: int) -> str:
    """``count`` single-character words separated by spaces (``2*count - 1`` chars)."""
    return " ".join("abcdefghijklmnopqrstuvwxyz"[i % 26] for i in range(count))


def ids(records: Sequence) -> list[str]:
    return [r.id for r in records]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _logs_to_stderr() -> None:
    """Keep log lines off stdout, which some tests parse as program output."""
    configure_logging(log_level="WARNING", stream=sys.stderr)


@pytest.fixture
def rag_config() -> RAGConfig:
    """Small budgets so tests produce several fragments from short texts."""
    return RAGConfig.create(
        embedding_model="fake-embedding",
        generation_model="mock-model",
        top_k=3,
        timeout_ms=5000,
        chunk_size=60,
        chunk_overlap=3,
        embedding_concurrency=2,
    )


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def mock_llm_provider() -> MagicMock:
    """Mock ILLMProvider; set ``complete.side_effect`` per test."""
    return make_llm()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path) -> SQLiteDocumentStore:
    store = SQLiteDocumentStore(db_path=tmp_path / "documents.db")
    await store.initialize()
    return store


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def document_store(request, tmp_path):
    """Each test using this fixture runs against both store backends."""
    if request.param == "memory":
        return MemoryDocumentStore()
    store = SQLiteDocumentStore(db_path=tmp_path / "documents.db")
    await store.initialize()
    return store
