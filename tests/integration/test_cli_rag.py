"""Integration tests for the one-shot ``src.cli.rag`` command."""

from __future__ import annotations

import io
import json
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from src.cli.rag import main
from src.models.rag import RAGConfig
from src.providers.document_store.memory_store import MemoryDocumentStore
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.performance_assessor import PerformanceAssessor
from src.services.query_service import QueryService
from src.services.response_synthesizer import ResponseSynthesizer
from tests.conftest import ASSESSMENT_JSON, FakeEmbeddingProvider, make_llm


def _services(*llm_responses: str, fail_on: str | None = None):
    config = RAGConfig.create(embedding_model="fake-embedding", chunk_size=200, chunk_overlap=5)
    store = MemoryDocumentStore()
    embedding = FakeEmbeddingProvider(fail_on=fail_on)
    llm = make_llm(*llm_responses)
    ingestion = IngestionService(
        chunker=TextChunker(chunk_size=config.chunk_size, overlap=config.chunk_overlap),
        embedding_provider=embedding,
        document_store=store,
        config=config,
    )
    query = QueryService(
        document_store=store,
        embedding_provider=embedding,
        synthesizer=ResponseSynthesizer(llm),
        assessor=PerformanceAssessor(llm),
        config=config,
    )
    return store, ingestion, query


def _run(argv: list[str], services) -> tuple[int, str, str]:
    """Run the CLI with *services* injected; return (exit code, stdout, stderr)."""
    out, err = io.StringIO(), io.StringIO()
    with patch("src.cli.rag._build_services", return_value=services), \
            redirect_stdout(out), redirect_stderr(err):
        exit_code = main(argv)
    return exit_code, out.getvalue(), err.getvalue()


def _notes(tmp_path, text: str = "Refunds are issued within thirty days of purchase."):
    path = tmp_path / "notes.txt"
    path.write_text(text, encoding="utf-8")
    return path


def test_prints_answer_and_scores(tmp_path) -> None:
    notes = _notes(tmp_path)

    exit_code, out, err = _run(
        ["--file", str(notes), "--question", "How long for refunds?"],
        _services("Thirty days.", ASSESSMENT_JSON),
    )

    assert exit_code == 0
    assert "Thirty days." in out
    assert "Context relevance: 0.80" in out
    assert "Cite the fragment numbers." in out
    assert "Ingested notes.txt: 1 fragments" in err


def test_json_output(tmp_path) -> None:
    notes = _notes(tmp_path)

    exit_code, out, _ = _run(
        ["--file", str(notes), "--question", "refunds?", "--json"],
        _services("Thirty days.", ASSESSMENT_JSON),
    )

    assert out.startswith("{")
    result = json.loads(out)
    assert exit_code == 0
    assert result["context"] == ["Refunds are issued within thirty days of purchase."]
    assert result["performance"]["responseQuality"] == 0.7


def test_failed_ingestion_exits_nonzero(tmp_path) -> None:
    notes = _notes(tmp_path)

    exit_code, out, err = _run(
        ["--file", str(notes), "--question", "refunds?"],
        _services(fail_on="Refunds"),
    )

    assert exit_code == 1
    assert out == ""
    assert "simulated embedding outage" in err


def test_generation_error_exits_nonzero(tmp_path) -> None:
    notes = _notes(tmp_path)

    exit_code, _, err = _run(["--file", str(notes), "--question", "refunds?"], _services(""))

    assert exit_code == 1
    assert "Error:" in err


def test_missing_file_exits_nonzero(tmp_path) -> None:
    exit_code, _, err = _run(
        ["--file", str(tmp_path / "absent.txt"), "--question", "q"], _services()
    )

    assert exit_code == 1
    assert "Error:" in err


def test_logging_is_configured_on_stderr(tmp_path) -> None:
    notes = _notes(tmp_path)

    with patch("src.cli.rag.configure_logging") as configure:
        exit_code, _, err = _run(
            ["--file", str(notes), "--question", "refunds?", "--json"],
            _services("Thirty days.", ASSESSMENT_JSON),
        )

    assert exit_code == 0
    # The stream handed to logging is the one the progress lines went to.
    assert configure.call_args.kwargs["stream"].getvalue() == err
