"""Document store implementations.

- MemoryDocumentStore -- dict-backed, process-local (default, tests)
- SQLiteDocumentStore -- aiosqlite-backed, survives restarts
"""

from src.providers.document_store.memory_store import MemoryDocumentStore
from src.providers.document_store.sqlite_store import SQLiteDocumentStore

__all__ = ["MemoryDocumentStore", "SQLiteDocumentStore"]
