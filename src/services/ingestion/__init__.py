"""Background document ingestion: **chunk -> embed -> persist**.

1. **Chunk** (chunker.py / TextChunker) -- splits text into overlapping
   word-aligned fragments of roughly ``chunk_size`` characters.
2. **Embed** (via IEmbeddingProvider) -- one vector per fragment, with
   bounded concurrency.
3. **Persist** (via IDocumentStore) -- all records in one atomic batch,
   then the document's metadata is flipped to ``processed``.

IngestionService runs the state machine for one document;
IngestionWorkerPool runs many of them off the request path.
"""

from src.services.ingestion.chunker import TextChunker, chunk_spans, chunk_text
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.worker_pool import IngestionWorkerPool

__all__ = [
    "IngestionService",
    "IngestionWorkerPool",
    "TextChunker",
    "chunk_spans",
    "chunk_text",
]
