"""Unit tests for cosine similarity and top-K ranking."""

from __future__ import annotations

import math

import pytest

from src.services.similarity import cosine_similarity, rank, rank_with_scores, similarity_scores
from src.utils.errors import VectorDimensionError


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self) -> None:
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_zero_vector_is_zero_not_nan(self) -> None:
        result = cosine_similarity([0.0, 0.0], [1.0, 2.0])
        assert result == 0.0
        assert not math.isnan(result)
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_dimension_mismatch_raises(self) -> None:
        with pytest.raises(VectorDimensionError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


class TestSimilarityScores:
    def test_matches_pairwise_cosine(self) -> None:
        query = [0.3, 0.4, 0.5]
        vectors = [[1.0, 0.0, 0.0], [0.3, 0.4, 0.5], [0.0, 0.0, 0.0]]
        scores = similarity_scores(query, vectors)
        assert scores == pytest.approx([cosine_similarity(query, v) for v in vectors])
        assert scores[2] == 0.0

    def test_empty(self) -> None:
        assert similarity_scores([1.0], []) == []

    def test_candidate_dimension_mismatch_raises(self) -> None:
        with pytest.raises(VectorDimensionError, match="Candidate 1"):
            similarity_scores([1.0, 0.0], [[1.0, 0.0], [1.0, 0.0, 0.0]])


class TestRank:
    @pytest.fixture()
    def candidates(self) -> list[tuple[str, list[float]]]:
        return [
            ("low", [0.1, 0.995]),
            ("high", [0.9, 0.436]),
            ("mid", [0.5, 0.866]),
        ]

    def test_more_similar_candidate_wins(self) -> None:
        query = [1.0, 0.0]
        assert rank(query, [("a", [1.0, 0.1]), ("b", [0.1, 1.0])], 1) == ["a"]
        assert rank(query, [("b", [0.1, 1.0]), ("a", [1.0, 0.1])], 1) == ["a"]

    def test_descending_order(self, candidates) -> None:
        assert rank([1.0, 0.0], candidates, 3) == ["high", "mid", "low"]

    def test_zero_vector_candidate_ranks_without_error(self) -> None:
        result = rank_with_scores([1.0, 0.0], [("zero", [0.0, 0.0]), ("x", [1.0, 0.0])], 2)
        assert result == [("x", pytest.approx(1.0)), ("zero", 0.0)]

    @pytest.mark.parametrize("k", [1, 2, 3, 4, 10])
    def test_top_k_bound(self, candidates, k: int) -> None:
        assert len(rank([1.0, 0.0], candidates, k)) == min(k, len(candidates))

    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_top_k_returns_nothing(self, candidates, k: int) -> None:
        assert rank([1.0, 0.0], candidates, k) == []

    def test_ties_keep_input_order(self) -> None:
        candidates = [("first", [1.0, 2.0]), ("other", [2.0, 0.0]), ("second", [1.0, 2.0])]
        assert rank([0.5, 1.0], candidates, 3) == ["first", "second", "other"]

    def test_no_candidates(self) -> None:
        assert rank([1.0, 0.0], [], 3) == []

    def test_scores_returned_with_texts(self, candidates) -> None:
        scored = rank_with_scores([1.0, 0.0], candidates, 2)
        assert [text for text, _ in scored] == ["high", "mid"]
        assert scored[0][1] > scored[1][1]
