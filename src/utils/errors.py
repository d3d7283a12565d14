"""Custom exception hierarchy for the document RAG service.

All application exceptions inherit from :class:`DocRAGError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "sqlite") caused the failure.

The hierarchy is organized by the stage that raises it:

    DocRAGError  (base -- catch-all for any service error)
    +-- ChunkingError            (text -> fragments)
    +-- EmbeddingServiceError    (remote embedding call failed / timed out)
    +-- GenerationServiceError   (remote generation call failed / timed out)
    +-- GenerationEmptyResponse  (generation call returned no content)
    +-- AssessmentParseError     (self-assessment output not parseable)
    +-- AnalysisParseError       (file summary/category output not parseable)
    +-- VectorDimensionError     (vectors of different length compared)
    +-- DocumentNotFound         (document store has no such document)
    +-- DocumentAlreadyExists    (document id already taken)
    +-- IngestionFailed          (terminal ingestion state, wraps the cause)
    +-- ConfigurationError       (invalid or missing configuration)

Query failures propagate to the caller as exactly one of these types.
Ingestion failures never propagate: the orchestrator records them on the
document's processing metadata.
"""

from __future__ import annotations


class DocRAGError(Exception):
    """Base exception for all service errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets, e.g.
    ``[openai_embedding] request timed out``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion-side errors
# ---------------------------------------------------------------------------


class ChunkingError(DocRAGError):
    """Raised when text cannot be split into fragments (malformed input)."""

    def __init__(
        self,
        message: str = "Text chunking failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingServiceError(DocRAGError):
    """Raised when the remote embedding service fails or times out.

    Never replaced by a zero or placeholder vector.
    """

    def __init__(
        self,
        message: str = "Embedding service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionFailed(DocRAGError):
    """Terminal ingestion state for one document.

    Carries the phase the job was in when it failed and the underlying
    exception, which is also chained as ``__cause__`` by the orchestrator.
    """

    def __init__(
        self,
        message: str = "Document ingestion failed",
        provider_name: str | None = None,
        phase: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._phase = phase
        self._cause = cause

    @property
    def phase(self) -> str | None:
        return self._phase

    @property
    def cause(self) -> BaseException | None:
        return self._cause


# ---------------------------------------------------------------------------
# Generation-side errors
# ---------------------------------------------------------------------------


class GenerationServiceError(DocRAGError):
    """Raised when the remote generation service fails or times out."""

    def __init__(
        self,
        message: str = "Generation service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationEmptyResponse(DocRAGError):
    """Raised when the generation service returns no content."""

    def __init__(
        self,
        message: str = "Generation service returned an empty response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AssessmentParseError(DocRAGError):
    """Raised when a self-assessment cannot be parsed into its three fields."""

    def __init__(
        self,
        message: str = "Performance assessment could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisParseError(DocRAGError):
    """Raised when a file summary/category response cannot be parsed."""

    def __init__(
        self,
        message: str = "File analysis could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Retrieval / storage errors
# ---------------------------------------------------------------------------


class VectorDimensionError(DocRAGError):
    """Raised when two vectors of different length would be compared."""

    def __init__(
        self,
        message: str = "Embedding vectors have mismatched dimensions",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFound(DocRAGError):
    """Raised when the document store has no document with the given id."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
        document_id: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._document_id = document_id

    @property
    def document_id(self) -> str | None:
        return self._document_id


class DocumentAlreadyExists(DocRAGError):
    """Raised when a document is created with an id that is already stored."""

    def __init__(
        self,
        message: str = "Document already exists",
        provider_name: str | None = None,
        document_id: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._document_id = document_id

    @property
    def document_id(self) -> str | None:
        return self._document_id


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class ConfigurationError(DocRAGError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
