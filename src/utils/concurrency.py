"""Bounded-concurrency helpers for remote service fan-out.

Ingestion embeds every fragment of a document through the remote
embedding service.  Issuing all calls at once would overwhelm the
service on large documents, so calls go through a semaphore.

:func:`throttled_gather` mirrors ``asyncio.gather`` but:

- at most ``limit`` awaitables run at any moment;
- with ``fail_fast=True`` (the default) the first exception cancels every
  other in-flight call and is re-raised, so an ingestion that is already
  doomed stops spending remote calls.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    factories: Sequence[Callable[[], Awaitable[_T]]],
    limit: int,
    fail_fast: bool = True,
) -> list[_T]:
    """Run awaitables produced by *factories* with at most *limit* in flight.

    Factories (zero-argument callables) are used instead of ready-made
    coroutines so that nothing starts, and nothing needs closing, for
    calls that never get a slot.

    Parameters
    ----------
    factories:
        Zero-argument callables returning the awaitable to run.
    limit:
        Maximum number of awaitables executing concurrently (>= 1).
    fail_fast:
        When ``True`` the first exception cancels all pending work and is
        raised.  When ``False`` every call runs to completion and the first
        exception (in input order) is raised afterwards.

    Returns
    -------
    list
        Results in the same order as *factories*.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if not factories:
        return []

    semaphore = asyncio.Semaphore(limit)

    async def _run(factory: Callable[[], Awaitable[_T]]) -> _T:
        async with semaphore:
            return await factory()

    tasks = [asyncio.ensure_future(_run(f)) for f in factories]

    if not fail_fast:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        _logger.debug("throttled_gather_cancelled", cancelled=len(pending))

    # Re-raise the first failure in input order for a deterministic error.
    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()  # type: ignore[misc]

    return [task.result() for task in tasks]
