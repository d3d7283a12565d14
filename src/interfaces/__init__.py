"""Public interface definitions for every external collaborator.

Business logic talks to remote model services and persistence only
through the abstract base classes in this package.  Concrete adapters
live in ``src/providers/`` and are injected in ``src/main.py``, so tests
can swap in fakes without network access.

    Interface             ->  Concrete implementations (in src/providers/)
    -----------------------------------------------------------------
    IEmbeddingProvider    ->  OpenAIEmbeddingProvider
    ILLMProvider          ->  OpenAILLMProvider
    IDocumentStore        ->  MemoryDocumentStore, SQLiteDocumentStore
"""

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
]
