"""FastAPI API routes for the document RAG service.

Service dependencies are resolved from ``app.state`` (populated at
startup by ``main._build_all``) via FastAPI's ``Depends`` using the
``Annotated`` pattern.

Endpoint                              Method  Description
-------------------------------------------------------------------------
/api/v1/documents                     POST    Upload text -> analyse -> queue ingestion
/api/v1/documents                     GET     List stored documents
/api/v1/documents/{id}                GET     Fetch one document
/api/v1/documents/{id}                DELETE  Delete a document and its embeddings
/api/v1/documents/{id}/ingestion      GET     Background ingestion progress
/api/v1/query                         POST    Answer a question from chosen documents
/api/v1/health                        GET     Health check + configured models
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response, UploadFile

from src.api.schemas import (
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    IngestionStatusResponse,
    QueryRequest,
)
from src.interfaces.document_store import IDocumentStore
from src.models.document import Document, ProcessingMetadata
from src.models.rag import QueryResult, RAGConfig
from src.pipeline.progress_tracker import ProgressTracker
from src.services.file_analyzer import FileAnalyzer
from src.services.ingestion.worker_pool import IngestionWorkerPool
from src.services.query_service import QueryService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

# Uploads are read in 64 KB increments so oversized files are rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_document_store(request: Request) -> IDocumentStore:
    """Return the document store from application state."""
    return request.app.state.document_store


def _get_file_analyzer(request: Request) -> FileAnalyzer:
    return request.app.state.file_analyzer


def _get_worker_pool(request: Request) -> IngestionWorkerPool:
    return request.app.state.worker_pool


def _get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def _get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


StoreDep = Annotated[IDocumentStore, Depends(_get_document_store)]
AnalyzerDep = Annotated[FileAnalyzer, Depends(_get_file_analyzer)]
PoolDep = Annotated[IngestionWorkerPool, Depends(_get_worker_pool)]
QueryServiceDep = Annotated[QueryService, Depends(_get_query_service)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > _MAX_FILE_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum: {_MAX_FILE_SIZE} bytes.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=Document,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Upload a text document and queue it for ingestion",
)
async def upload_document(
    file: UploadFile,
    store: StoreDep,
    analyzer: AnalyzerDep,
    pool: PoolDep,
    rag_enabled: Annotated[bool, Form()] = True,
) -> Document:
    """Store an uploaded text file and, when ``rag_enabled``, ingest it in the background.

    The summary and category are produced synchronously; chunking and
    embedding happen after the response is sent.
    """
    raw = await _read_upload(file)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="File is not valid UTF-8 text.") from exc
    if not text.strip():
        raise HTTPException(status_code=400, detail="File is empty.")

    analysis = await analyzer.analyze(text)

    document = await store.create_document(
        Document(
            id="",
            name=file.filename or "untitled.txt",
            content_type=file.content_type or "text/plain",
            size=len(raw),
            content=text,
            summary=analysis.summary,
            category=analysis.category,
            processing_metadata=ProcessingMetadata(rag_enabled=rag_enabled),
        )
    )
    _logger.info(
        "document_uploaded",
        document_id=document.id,
        size=document.size,
        category=document.category,
        rag_enabled=rag_enabled,
    )

    await pool.trigger_ingestion(document.id, text, rag_enabled)
    return document


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List stored documents",
)
async def list_documents(store: StoreDep) -> DocumentListResponse:
    documents = await store.list_documents()
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get(
    "/documents/{document_id}",
    response_model=Document,
    responses={404: {"model": ErrorResponse}},
    summary="Fetch one document",
)
async def get_document(document_id: str, store: StoreDep) -> Document:
    return await store.get_document(document_id)


@router.delete(
    "/documents/{document_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document and its embeddings",
)
async def delete_document(
    document_id: str,
    store: StoreDep,
    tracker: TrackerDep,
) -> Response:
    await store.delete_document(document_id)
    tracker.forget(document_id)
    _logger.info("document_deleted", document_id=document_id)
    return Response(status_code=204)


@router.get(
    "/documents/{document_id}/ingestion",
    response_model=IngestionStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get background ingestion progress",
)
async def get_ingestion_status(
    document_id: str,
    store: StoreDep,
    tracker: TrackerDep,
) -> IngestionStatusResponse:
    """Return the tracked phase (if any) together with the stored metadata."""
    document = await store.get_document(document_id)
    status = tracker.get_status(document_id) or {}
    return IngestionStatusResponse(
        document_id=document_id,
        phase=status.get("phase"),
        message=status.get("message", ""),
        updated_at=status.get("updated_at"),
        metadata=document.processing_metadata.to_store(),
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@router.post(
    "/query",
    response_model=QueryResult,
    responses={502: {"model": ErrorResponse}},
    summary="Answer a question from the fragments of chosen documents",
)
async def query_documents(body: QueryRequest, query_service: QueryServiceDep) -> QueryResult:
    return await query_service.answer(body.query, body.document_ids, top_k=body.top_k)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, store kind, and configured models."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    config: RAGConfig | None = getattr(request.app.state, "rag_config", None)
    store: IDocumentStore | None = getattr(request.app.state, "document_store", None)
    pool: IngestionWorkerPool | None = getattr(request.app.state, "worker_pool", None)

    if pool is not None:
        providers["ingestion_workers"] = pool.running
        providers["ingestion_pending"] = pool.pending

    models: dict[str, str] = {}
    if config is not None:
        models = {"embedding": config.embedding_model, "generation": config.generation_model}

    model_services_ok = providers.get("embedding", False) and providers.get("llm", False)
    status = "healthy" if model_services_ok else "degraded"

    return HealthResponse(
        status=status,
        version=_VERSION,
        document_store=store.get_store_name() if store is not None else "none",
        models=models,
        providers=providers,
    )
