"""Ingestion progress tracking with callback-based listener notification.

Tracks the current :class:`IngestionPhase` of each document's background
ingestion and broadcasts every transition to registered listener
callbacks.  Listeners are keyed by document id so concurrent ingestions
never see each other's updates.

    IngestionService ──update()──→ ProgressTracker ──callback()──→ listener(s)

Listener errors are caught and logged: a broken listener must not stop an
ingestion job.  Both sync and async callbacks are supported.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from src.models.rag import IngestionPhase
from src.utils.logging import get_logger

_DEFAULT_MAX_TRACKED = 1000


@dataclass
class _DocumentStatus:
    """Internal snapshot of one document's ingestion progress."""

    phase: IngestionPhase = IngestionPhase.UPLOADED
    message: str = ""
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017


class ProgressTracker:
    """Tracks and broadcasts ingestion phases via callbacks.

    At most *max_tracked* statuses are kept.  When the map is full the
    oldest finished (DONE or FAILED) entries are dropped first; the stored
    document metadata still records the outcome.  In-flight entries are
    never dropped.
    """

    def __init__(self, max_tracked: int = _DEFAULT_MAX_TRACKED) -> None:
        self._max_tracked = max(1, max_tracked)
        self._statuses: OrderedDict[str, _DocumentStatus] = OrderedDict()
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(
        self,
        document_id: str,
        phase: IngestionPhase,
        message: str = "",
    ) -> None:
        """Record a phase transition and notify all registered listeners."""
        self._statuses[document_id] = _DocumentStatus(phase=phase, message=message)
        self._statuses.move_to_end(document_id)
        self._prune()

        self._logger.debug(
            "ingestion_progress",
            document_id=document_id,
            phase=phase.value,
            message=message,
        )

        await self._notify_listeners(document_id, phase, message)

        # Terminal phases release the listeners; nothing else will be sent.
        if phase.is_terminal:
            self._listeners.pop(document_id, None)

    def register_listener(self, document_id: str, callback: Callable) -> None:
        """Register a callback ``(document_id, phase, message)`` for a document."""
        listeners = self._listeners.setdefault(document_id, [])
        if callback not in listeners:
            listeners.append(callback)

    def unregister_listener(self, document_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(document_id, [])
        if callback in listeners:
            listeners.remove(callback)

    def get_status(self, document_id: str) -> dict | None:
        """Return ``{phase, message, updated_at}`` or ``None`` if never tracked."""
        status = self._statuses.get(document_id)
        if status is None:
            return None
        return {
            "phase": status.phase.value,
            "message": status.message,
            "updated_at": status.updated_at.isoformat(),
        }

    def forget(self, document_id: str) -> None:
        """Drop all state for *document_id* (e.g. after the document is deleted)."""
        self._statuses.pop(document_id, None)
        self._listeners.pop(document_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _prune(self) -> None:
        excess = len(self._statuses) - self._max_tracked
        if excess <= 0:
            return
        finished = [
            document_id
            for document_id, status in self._statuses.items()
            if status.phase.is_terminal
        ]
        for document_id in finished[:excess]:
            del self._statuses[document_id]

    async def _notify_listeners(
        self,
        document_id: str,
        phase: IngestionPhase,
        message: str,
    ) -> None:
        for callback in list(self._listeners.get(document_id, [])):
            try:
                result = callback(document_id, phase, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:  # noqa: BLE001
                self._logger.warning(
                    "progress_listener_error",
                    document_id=document_id,
                    error=str(exc),
                )
