"""Domain models, re-exported for ``from src.models import ...``.

    - document.py -- the stored document and its processing metadata
    - rag.py      -- RAG configuration, embedding records, query results,
                     and the ingestion state machine
"""

from __future__ import annotations

from src.models.document import Document, ProcessingMetadata
from src.models.rag import (
    EmbeddingRecord,
    IngestionOutcome,
    IngestionPhase,
    PerformanceScores,
    QueryResult,
    RAGConfig,
)

__all__ = [
    # document
    "Document",
    "ProcessingMetadata",
    # rag
    "EmbeddingRecord",
    "IngestionOutcome",
    "IngestionPhase",
    "PerformanceScores",
    "QueryResult",
    "RAGConfig",
]
