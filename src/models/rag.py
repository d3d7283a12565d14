"""RAG data models: configuration, embedding records, and query results.

Defines Pydantic v2 models for the retrieval-augmented generation core.
All models use frozen config so a value handed to one stage can never be
mutated by the next.

Flow overview:

    1. INGESTION: a document's text is split into overlapping fragments.
    2. EMBEDDING: each fragment becomes a fixed-length vector.
    3. STORAGE: one :class:`EmbeddingRecord` per fragment is written to the
       document store.
    4. RETRIEVAL: a query vector is ranked against stored records by cosine
       similarity.
    5. GENERATION: the top fragments become the context of an answer, which
       is then self-assessed into :class:`PerformanceScores`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.utils.errors import ConfigurationError


# ---------------------------------------------------------------------------
# RAGConfig — the one place orchestrator settings are validated.
# ---------------------------------------------------------------------------
class RAGConfig(BaseModel):
    """Explicit configuration for the ingestion and query orchestrators.

    Build it with :meth:`create` to get a :class:`ConfigurationError`
    instead of a raw pydantic ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    embedding_model: str = Field(default="text-embedding-3-large", min_length=1)
    generation_model: str = Field(default="gpt-4o", min_length=1)
    top_k: int = Field(default=3, ge=1)
    timeout_ms: int = Field(default=30000, ge=1)
    # targetSize is measured in characters, overlap in words.
    chunk_size: int = Field(default=1000, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    embedding_concurrency: int = Field(default=4, ge=1)

    @classmethod
    def create(cls, **values: object) -> RAGConfig:
        """Validate *values* once, translating failures to ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(message=f"Invalid RAG configuration: {exc}") from exc

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


# ---------------------------------------------------------------------------
# EmbeddingRecord — one persisted fragment.
# ---------------------------------------------------------------------------
class EmbeddingRecord(BaseModel):
    """A fragment of a document together with its embedding vector.

    Created once per fragment by the ingestion orchestrator and never
    updated.  ``ordinal`` is the fragment's position in the source text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for this record.")
    document_id: str = Field(description="Owning document.")
    ordinal: int = Field(ge=0, description="Position of the fragment within the document.")
    text: str = Field(description="Fragment text.")
    vector: list[float] = Field(description="Embedding vector.")
    model: str = Field(default="", description="Embedding model that produced the vector.")

    @property
    def dimension(self) -> int:
        return len(self.vector)


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------
class PerformanceScores(BaseModel):
    """Self-assessed quality of one answer.

    Accepts both the camelCase keys the assessment prompt asks for and
    snake_case names.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    context_relevance: float = Field(ge=0.0, le=1.0)
    response_quality: float = Field(ge=0.0, le=1.0)
    suggested_improvements: list[str]


class QueryResult(BaseModel):
    """A complete answer to one query.  Never built partially."""

    model_config = ConfigDict(frozen=True)

    query: str
    context: list[str] = Field(description="Selected fragments, most relevant first.")
    answer: str
    performance: PerformanceScores


# ---------------------------------------------------------------------------
# Ingestion state machine
# ---------------------------------------------------------------------------
class IngestionPhase(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """States of one document's background ingestion.

        UPLOADED → CHUNKING → EMBEDDING → PERSISTING → DONE
                                                    ↘ FAILED (from any state)
    """

    UPLOADED = "UPLOADED"
    CHUNKING = "CHUNKING"
    EMBEDDING = "EMBEDDING"
    PERSISTING = "PERSISTING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (IngestionPhase.DONE, IngestionPhase.FAILED)


class IngestionOutcome(BaseModel):
    """Result of one ingestion job, returned to the worker that ran it."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    phase: IngestionPhase
    embedding_count: int = Field(default=0, ge=0)
    error_message: str | None = None
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def succeeded(self) -> bool:
        return self.phase is IngestionPhase.DONE
