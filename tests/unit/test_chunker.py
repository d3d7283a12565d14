"""Unit tests for the chunker: word windows under a character budget."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import TextChunker, chunk_spans, chunk_text
from src.utils.errors import ChunkingError
from tests.conftest import one_char_words

_SAMPLE = (
    "Retrieval augmented generation grounds a language model in documents. "
    "Each document is split into overlapping fragments, every fragment is "
    "embedded, and the fragments closest to a question become the context "
    "of the answer. Overlap keeps sentences that straddle a boundary intact."
)


def _reconstruct(words: list[str], spans: list[tuple[int, int]]) -> list[str]:
    """Concatenate fragments, dropping each fragment's overlapping prefix."""
    out: list[str] = []
    previous_end = 0
    for start, end in spans:
        out.extend(words[max(start, previous_end):end])
        previous_end = end
    return out


# ---------------------------------------------------------------------------
# chunk_text
# ---------------------------------------------------------------------------


class TestChunkText:
    def test_empty_text_returns_no_fragments(self) -> None:
        assert chunk_text("", 100, 10) == []
        assert chunk_text("   \n\t ", 100, 10) == []

    def test_short_text_is_one_fragment(self) -> None:
        assert chunk_text("alpha beta gamma", 1000, 200) == ["alpha beta gamma"]

    def test_whitespace_is_normalised_to_single_spaces(self) -> None:
        assert chunk_text("alpha\n\nbeta\t gamma", 1000, 0) == ["alpha beta gamma"]

    def test_fragments_respect_character_budget(self) -> None:
        fragments = chunk_text(_SAMPLE, 60, 2)
        assert len(fragments) > 1
        for fragment in fragments:
            assert len(fragment) <= 60

    def test_overlap_words_seed_next_fragment(self) -> None:
        fragments = chunk_text(_SAMPLE, 60, 3)
        for previous, current in zip(fragments, fragments[1:]):
            assert current.split()[:3] == previous.split()[-3:]

    def test_zero_overlap_partitions_words(self) -> None:
        fragments = chunk_text(_SAMPLE, 50, 0)
        joined = " ".join(fragments).split()
        assert joined == _SAMPLE.split()

    def test_long_word_becomes_its_own_fragment(self) -> None:
        long_word = "x" * 50
        fragments = chunk_text(f"a b {long_word} c d", 10, 0)
        assert long_word in fragments
        assert all(len(f) <= 10 or f == long_word for f in fragments)

    def test_deterministic(self) -> None:
        assert chunk_text(_SAMPLE, 40, 4) == chunk_text(_SAMPLE, 40, 4)


# ---------------------------------------------------------------------------
# chunk_spans
# ---------------------------------------------------------------------------


class TestChunkSpans:
    @pytest.mark.parametrize(
        ("target_size", "overlap"),
        [(1, 0), (5, 1), (20, 3), (60, 10), (1000, 200)],
    )
    def test_coverage_reconstructs_word_sequence(self, target_size: int, overlap: int) -> None:
        words = _SAMPLE.split()
        spans = chunk_spans(words, target_size, overlap)
        assert _reconstruct(words, spans) == words

    def test_starts_strictly_increase_and_end_is_word_count(self) -> None:
        words = _SAMPLE.split()
        spans = chunk_spans(words, 30, 4)
        starts = [s for s, _ in spans]
        assert starts == sorted(set(starts))
        assert spans[-1][1] == len(words)
        for (_, previous_end), (start, _) in zip(spans, spans[1:]):
            assert start <= previous_end

    def test_overlap_larger_than_fragment_still_terminates(self) -> None:
        words = one_char_words(2000).split()
        spans = chunk_spans(words, 3, 10_000)
        # Each fragment holds two one-char words; every start advances by one.
        assert len(spans) == len(words) - 1
        assert [s for s, _ in spans] == list(range(len(words) - 1))

    def test_target_size_one_yields_one_word_per_fragment(self) -> None:
        words = ["aa", "bb", "cc"]
        assert chunk_spans(words, 1, 0) == [(0, 1), (1, 2), (2, 3)]

    def test_no_words_no_spans(self) -> None:
        assert chunk_spans([], 10, 2) == []

    def test_invalid_target_size_raises(self) -> None:
        with pytest.raises(ChunkingError):
            chunk_spans(["a"], 0, 0)

    def test_negative_overlap_raises(self) -> None:
        with pytest.raises(ChunkingError):
            chunk_spans(["a"], 10, -1)


# ---------------------------------------------------------------------------
# Scenario: 600 words, 1000-character budget, 200-word overlap
# ---------------------------------------------------------------------------


class TestSixHundredWords:
    def test_short_words_fit_in_two_fragments(self) -> None:
        text = one_char_words(600)  # 1199 characters
        fragments = chunk_text(text, 1000, 200)

        assert len(fragments) == 2
        first, second = (f.split() for f in fragments)
        assert len(first) == 500
        assert second[:200] == first[-200:]
        assert second[200:] == text.split()[500:]

    def test_text_under_budget_is_single_fragment(self) -> None:
        text = one_char_words(400)  # 799 characters
        assert chunk_text(text, 1000, 200) == [text]


# ---------------------------------------------------------------------------
# TextChunker
# ---------------------------------------------------------------------------


class TestTextChunker:
    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.overlap == 200

    def test_chunk_uses_configuration(self) -> None:
        chunker = TextChunker(chunk_size=60, overlap=3)
        assert chunker.chunk(_SAMPLE) == chunk_text(_SAMPLE, 60, 3)

    def test_non_string_input_raises(self) -> None:
        with pytest.raises(ChunkingError):
            TextChunker().chunk(None)  # type: ignore[arg-type]

    @pytest.mark.parametrize(("chunk_size", "overlap"), [(0, 0), (10, -1)])
    def test_invalid_configuration_raises(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ChunkingError):
            TextChunker(chunk_size=chunk_size, overlap=overlap)
