"""One-shot CLI: ingest text files and ask a question against them.

Usage::

    python -m src.cli.rag --file notes.txt --question "What is the refund policy?"

    python -m src.cli.rag --file a.txt --file b.txt --question "..." --top-k 5 --json

Every file is ingested into an in-memory document store (or the SQLite
store with ``--db``), then the question is answered from the fragments of
exactly those files.  Requires ``OPENAI_API_KEY`` (or an OpenAI-compatible
``OPENAI_BASE_URL``).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src.config.loader import build_rag_config
from src.config.settings import Settings
from src.utils.errors import DocRAGError
from src.utils.logging import configure_logging


def _build_services(app_settings: Settings, db_path: str | None):  # noqa: ANN202
    """Construct the ingestion and query services for a single run.

    Imports are deferred so ``--help`` stays fast.
    """
    from src.providers.document_store.memory_store import MemoryDocumentStore
    from src.providers.document_store.sqlite_store import SQLiteDocumentStore
    from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from src.providers.llm.openai_provider import OpenAILLMProvider
    from src.services.ingestion.chunker import TextChunker
    from src.services.ingestion.ingestion_service import IngestionService
    from src.services.performance_assessor import PerformanceAssessor
    from src.services.query_service import QueryService
    from src.services.response_synthesizer import ResponseSynthesizer

    rag_config = build_rag_config(app_settings)
    store = SQLiteDocumentStore(db_path=db_path) if db_path else MemoryDocumentStore()
    embedding_provider = OpenAIEmbeddingProvider(
        settings=app_settings,
        timeout_seconds=rag_config.timeout_seconds,
        model=rag_config.embedding_model,
    )
    llm = OpenAILLMProvider(
        settings=app_settings,
        timeout_seconds=rag_config.timeout_seconds,
        model=rag_config.generation_model,
    )
    ingestion = IngestionService(
        chunker=TextChunker(chunk_size=rag_config.chunk_size, overlap=rag_config.chunk_overlap),
        embedding_provider=embedding_provider,
        document_store=store,
        config=rag_config,
    )
    query = QueryService(
        document_store=store,
        embedding_provider=embedding_provider,
        synthesizer=ResponseSynthesizer(llm=llm),
        assessor=PerformanceAssessor(llm=llm),
        config=rag_config,
    )
    return store, ingestion, query


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    from src.models.document import Document, ProcessingMetadata
    from src.providers.document_store.sqlite_store import SQLiteDocumentStore

    store, ingestion, query = _build_services(app_settings, args.db)
    if isinstance(store, SQLiteDocumentStore):
        await store.initialize()

    document_ids: list[str] = []
    for file_path in args.file:
        path = Path(file_path)
        text = path.read_text(encoding="utf-8")
        document = await store.create_document(
            Document(
                id="",
                name=path.name,
                size=len(text.encode("utf-8")),
                content=text,
                processing_metadata=ProcessingMetadata(rag_enabled=True),
            )
        )
        outcome = await ingestion.ingest_document(document.id, text)
        if not outcome.succeeded:
            print(f"Ingestion of {path} failed: {outcome.error_message}", file=sys.stderr)
            return 1
        print(f"Ingested {path.name}: {outcome.embedding_count} fragments", file=sys.stderr)
        document_ids.append(document.id)

    result = await query.answer(args.question, document_ids, top_k=args.top_k)

    if args.json:
        print(json.dumps(result.model_dump(by_alias=True), indent=2))
        return 0

    print(result.answer)
    print()
    print(f"Context relevance: {result.performance.context_relevance:.2f}")
    print(f"Response quality:  {result.performance.response_quality:.2f}")
    for suggestion in result.performance.suggested_improvements:
        print(f"  - {suggestion}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.rag",
        description="Ingest text files and answer a question from their contents.",
    )
    parser.add_argument(
        "--file",
        action="append",
        required=True,
        help="UTF-8 text file to ingest (repeatable)",
    )
    parser.add_argument("--question", required=True, help="Question to answer")
    parser.add_argument("--top-k", type=int, default=None, help="Fragments to use as context")
    parser.add_argument("--db", default=None, help="SQLite database path (default: in-memory)")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit code."""
    args = _build_parser().parse_args(argv)

    app_settings = Settings()
    # stdout carries the answer (or the JSON document); logs go to stderr.
    configure_logging(log_level="WARNING", stream=sys.stderr)

    try:
        return asyncio.run(_run(args, app_settings))
    except (DocRAGError, OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
