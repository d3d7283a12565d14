"""Structured logging setup using structlog.

Every event passes through one processor chain (context vars, level,
timestamp, stack info) and ends in either a coloured ConsoleRenderer for
local development or a JSONRenderer for production.  ``APP_ENV`` picks
the renderer (default ``"development"``) unless ``json_output`` forces JSON.

Records from standard-library ``logging`` (uvicorn, httpx, openai) are
rendered by the same chain.  The HTTP client libraries log every request
at INFO; they are held at WARNING unless the app itself runs at DEBUG.

Ingestion jobs run concurrently on the worker pool, so per-job fields
are bound with :func:`bound_document_context` rather than passed on
every call.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog

_NOISY_LIBRARIES = ("httpx", "httpcore", "openai")


def _shared_processors() -> list[structlog.types.Processor]:
    # contextvars first so document_id bindings land on every event.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _route_stdlib_logging(
    processors: list[structlog.types.Processor],
    renderer: structlog.types.Processor,
    stream: TextIO,
    level: str,
) -> None:
    """Send stdlib log records through *processors* and *renderer* to *stream*."""
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *processors,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = level if level == "DEBUG" else "WARNING"
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR, FATAL).
        json_output: Force JSON output. When False, uses console rendering in
                     development and JSON in production (detected via APP_ENV).
        stream: Where log lines go (default ``sys.stdout``).  Commands whose
                stdout is their output pass ``sys.stderr``.

    Returns:
        A configured structlog BoundLogger.
    """
    level = log_level.upper()
    stream = stream or sys.stdout
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    processors = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
    _route_stdlib_logging(processors, renderer, stream, level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with ``logger_name=name``.

    Configures logging with defaults on first use if nothing has yet.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


@contextmanager
def bound_document_context(document_id: str, **extra: object) -> Iterator[None]:
    """Bind ``document_id`` (and *extra*) to every log event inside the block.

    Uses structlog contextvars, so concurrent ingestion jobs running in
    separate asyncio tasks keep their own bindings.
    """
    with structlog.contextvars.bound_contextvars(document_id=document_id, **extra):
        yield
