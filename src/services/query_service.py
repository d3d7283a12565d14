"""Query orchestrator: retrieve, rank, synthesize, assess.

Answers one natural-language query against a caller-chosen set of
documents.  The steps are strictly sequential, each feeding the next:

  1. LOAD     -- embedding records of the candidate documents (an empty id
                 list means an empty candidate set, never a global scan)
  2. EMBED    -- the query text, with the same model as ingestion
  3. RANK     -- cosine similarity, top-K
  4. SYNTHESIZE -- grounded answer from the ranked context
  5. ASSESS   -- self-scored context relevance and answer quality

The result is all-or-nothing: any failure propagates as its typed error
and no :class:`QueryResult` is built.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

import structlog

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.rag import QueryResult, RAGConfig
from src.services.performance_assessor import PerformanceAssessor
from src.services.response_synthesizer import ResponseSynthesizer
from src.services.similarity import rank
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class QueryService:
    """Answers queries using retrieval + generation + self-assessment.

    Parameters
    ----------
    document_store:
        Read-only source of embedding records.
    embedding_provider:
        Embeds the query text.
    synthesizer:
        Generates the grounded answer.
    assessor:
        Scores the answer against its context.
    config:
        Validated RAG configuration (``top_k`` default, embedding model).
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        synthesizer: ResponseSynthesizer,
        assessor: PerformanceAssessor,
        config: RAGConfig,
    ) -> None:
        self._document_store = document_store
        self._embedding_provider = embedding_provider
        self._synthesizer = synthesizer
        self._assessor = assessor
        self._config = config

    async def answer(
        self,
        query: str,
        document_ids: Sequence[str],
        top_k: int | None = None,
    ) -> QueryResult:
        """Answer *query* from the fragments of *document_ids*.

        Parameters
        ----------
        query:
            The user's natural-language question.
        document_ids:
            Documents whose fragments are candidates.  Empty means none.
        top_k:
            Number of fragments to use as context; defaults to
            ``config.top_k``.

        Raises
        ------
        EmbeddingServiceError, VectorDimensionError, GenerationServiceError,
        GenerationEmptyResponse, AssessmentParseError
            Whichever step fails first.  No partial result is returned.
        """
        start = time.monotonic()
        k = self._config.top_k if top_k is None else top_k

        records = await self._document_store.get_embeddings(list(document_ids)) if document_ids else []

        query_vector = await self._embedding_provider.embed(
            query, model=self._config.embedding_model
        )

        context = rank(query_vector, [(r.text, r.vector) for r in records], k)

        answer = await self._synthesizer.synthesize(query, context)
        performance = await self._assessor.assess(query, context, answer)

        result = QueryResult(
            query=query,
            context=context,
            answer=answer,
            performance=performance,
        )
        logger.info(
            "query_answered",
            documents=len(document_ids),
            candidates=len(records),
            context_fragments=len(context),
            top_k=k,
            duration_seconds=round(time.monotonic() - start, 3),
        )
        return result
