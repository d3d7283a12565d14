"""Text chunking into overlapping word windows under a character budget.

Splits a document's text into fragments sized for the embedding model.

Two units are in play:

- ``target_size`` is a **character** budget: a fragment is closed as soon
  as appending the next word would push its length (words joined by single
  spaces) past the budget.
- ``overlap`` is a **word** count: the next fragment is seeded with the
  trailing ``overlap`` words of the fragment just closed, so a sentence
  cut by a boundary is still whole in at least one fragment.

Stored fragments depend on these boundaries, so the mixed units are kept.

Guarantees:

- Words are never split; a word longer than ``target_size`` becomes its
  own fragment.
- Every fragment starts at least one word after the previous one, so the
  loop terminates even when ``overlap`` is larger than a whole fragment.
- Dropping each fragment's overlapping prefix and concatenating the rest
  reproduces the input word sequence exactly.
"""

from __future__ import annotations

import structlog

from src.utils.errors import ChunkingError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


def chunk_spans(words: list[str], target_size: int, overlap: int) -> list[tuple[int, int]]:
    """Return ``(start, end)`` word-index spans for every fragment of *words*.

    Spans are half-open.  Starts are strictly increasing, every start is
    ``<=`` the previous end, and the last end equals ``len(words)``.
    """
    if target_size < 1:
        raise ChunkingError(message=f"target_size must be >= 1, got {target_size}")
    if overlap < 0:
        raise ChunkingError(message=f"overlap must be >= 0, got {overlap}")

    spans: list[tuple[int, int]] = []
    start = 0
    length = 0  # characters of words[start:index] joined by single spaces

    for index, word in enumerate(words):
        added = len(word) if index == start else len(word) + 1
        if index > start and length + added > target_size:
            spans.append((start, index))
            # Seed with the trailing `overlap` words, but always move at
            # least one word past the previous start.
            start = max(index - overlap, start + 1)
            length = len(" ".join(words[start:index]))
            added = len(word) if index == start else len(word) + 1
        length += added

    if start < len(words):
        spans.append((start, len(words)))
    return spans


def chunk_text(
    text: str,
    target_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split *text* into overlapping fragments.

    Deterministic and side-effect free.  Empty or whitespace-only text
    returns an empty list.
    """
    words = text.split()
    if not words:
        return []
    return [" ".join(words[s:e]) for s, e in chunk_spans(words, target_size, overlap)]


class TextChunker:
    """Configured chunker used by the ingestion orchestrator.

    Parameters
    ----------
    chunk_size:
        Character budget per fragment (default 1000).
    overlap:
        Number of words carried over between consecutive fragments
        (default 200).
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_size < 1:
            raise ChunkingError(message=f"chunk_size must be >= 1, got {chunk_size}")
        if overlap < 0:
            raise ChunkingError(message=f"overlap must be >= 0, got {overlap}")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        """Split *text* into fragments using the configured budget."""
        if not isinstance(text, str):
            raise ChunkingError(message=f"Expected text, got {type(text).__name__}")

        fragments = chunk_text(text, self._chunk_size, self._overlap)
        logger.debug(
            "chunking_complete",
            num_chunks=len(fragments),
            avg_chars=sum(len(f) for f in fragments) // len(fragments) if fragments else 0,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return fragments
