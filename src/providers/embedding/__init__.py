"""Embedding provider implementations.

OpenAIEmbeddingProvider talks to the OpenAI embeddings API or any
OpenAI-compatible endpoint (``OPENAI_BASE_URL``).  The default model is
``text-embedding-3-large``; ingestion and querying always use the same
model so stored and query vectors share a dimension.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
