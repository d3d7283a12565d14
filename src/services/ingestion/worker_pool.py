"""Bounded worker pool that runs ingestion jobs detached from requests.

Uploads hand jobs to :meth:`IngestionWorkerPool.trigger_ingestion`, which
enqueues and returns.  A fixed number of worker tasks consume the queue
and call :meth:`IngestionService.ingest_document`, so:

- at most ``workers`` documents are ingested at once;
- the queue is bounded, so a burst of uploads applies backpressure to the
  uploader instead of spawning unbounded tasks;
- shutdown can drain queued jobs (with a timeout) before cancelling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from src.models.rag import IngestionOutcome
from src.services.ingestion.ingestion_service import IngestionService
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


@dataclass(frozen=True)
class IngestionJob:
    document_id: str
    text: str


class IngestionWorkerPool:
    """Fixed-size pool of asyncio workers consuming a bounded job queue.

    Parameters
    ----------
    service:
        The ingestion orchestrator each job is run through.
    workers:
        Number of concurrent ingestion jobs.
    queue_size:
        Maximum queued (not yet started) jobs.
    """

    def __init__(self, service: IngestionService, workers: int = 2, queue_size: int = 100) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._service = service
        self._worker_count = workers
        self._queue: asyncio.Queue[IngestionJob] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []
        self._outcomes: list[IngestionOutcome] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks.  Must be called from a running event loop."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"ingestion-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("ingestion_pool_started", workers=self._worker_count)

    async def stop(self, drain_timeout: float | None = 10.0) -> None:
        """Stop the workers, first waiting up to *drain_timeout* for queued jobs.

        ``drain_timeout=None`` waits for the queue to empty without limit;
        ``0`` cancels immediately.
        """
        if not self._workers:
            return
        if drain_timeout != 0:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("ingestion_pool_drain_timeout", pending=self._queue.qsize())

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("ingestion_pool_stopped", abandoned=self._queue.qsize())

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def trigger_ingestion(self, document_id: str, text: str, rag_enabled: bool) -> bool:
        """Queue *document_id* for background ingestion when *rag_enabled*.

        Returns ``True`` if a job was queued, ``False`` for the no-op case.
        Waits only if the queue is full.
        """
        if not rag_enabled:
            logger.debug("ingestion_skipped", document_id=document_id, reason="rag_disabled")
            return False
        if not self._workers:
            self.start()
        await self._queue.put(IngestionJob(document_id=document_id, text=text))
        logger.info("ingestion_queued", document_id=document_id, queued=self._queue.qsize())
        return True

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def outcomes(self) -> list[IngestionOutcome]:
        """Outcomes of finished jobs, oldest first (bounded to the last 1000)."""
        return list(self._outcomes)

    # ------------------------------------------------------------------
    # Worker loop
    # ------------------------------------------------------------------

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                outcome = await self._service.ingest_document(job.document_id, job.text)
                self._outcomes.append(outcome)
                del self._outcomes[:-1000]
            except Exception as exc:  # noqa: BLE001
                # One bad job must not take the worker down with it.
                logger.exception(
                    "ingestion_worker_error",
                    worker=index,
                    document_id=job.document_id,
                    error=str(exc),
                )
            finally:
                self._queue.task_done()
