"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into a fixed-length vector.  The
same provider instance is used by ingestion (one call per fragment) and
by the query path (one call per query), so both sides always produce
vectors of the same dimensionality.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider — OpenAI or any OpenAI-compatible embeddings API
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for the remote embedding service used by the RAG core."""

    @abstractmethod
    async def embed(self, text: str, model: str | None = None) -> list[float]:
        """Generate an embedding vector for *text*.

        Parameters
        ----------
        text:
            The text to embed (a fragment or a query).
        model:
            Embedding model identifier.  ``None`` selects the provider's
            configured default.

        Returns
        -------
        list[float]
            The embedding vector.  Never empty.

        Raises
        ------
        src.utils.errors.EmbeddingServiceError
            If the remote call fails, times out, or returns no vector.
            Implementations must not substitute a placeholder vector.
        """

    @abstractmethod
    def get_default_model(self) -> str:
        """Return the model identifier used when ``model`` is ``None``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present).

        Does not contact the remote service.
        """
