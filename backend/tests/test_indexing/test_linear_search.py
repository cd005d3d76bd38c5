"""Tests for exact cosine ranking and the LinearSearchIndex."""

import math
from typing import List

import pytest

from exam_rag.infrastructure.indexing.base import ChunkMetadata, ChunkVector, IndexType, SearchOptions
from exam_rag.infrastructure.indexing.linear_search import LinearSearchIndex, cosine_similarity, rank_candidates
from exam_rag.modules.common.exceptions import DimensionMismatchError, InvalidQueryError


def make_vector(chunk_id: str, embedding: List[float], chunk_index: int = 0, exam_id: str = "exam-1") -> ChunkVector:
    return ChunkVector(
        chunk_id=chunk_id,
        exam_id=exam_id,
        content=f"content of {chunk_id}",
        embedding=embedding,
        metadata=ChunkMetadata(
            file_name="notes.pdf",
            file_url="https://files.example.com/notes.pdf",
            chunk_index=chunk_index,
            start_char=chunk_index * 10,
            end_char=chunk_index * 10 + 10,
        ),
    )


class TestCosineSimilarity:
    """Similarity is bounded and well-defined for degenerate vectors."""

    def test_self_similarity_is_one(self):
        vector = [0.3, -1.2, 4.5, 0.01]
        assert cosine_similarity(vector, vector) == pytest.approx(1.0, abs=1e-6)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
        assert cosine_similarity([1.0, 2.0, 3.0], [0.0, 0.0, 0.0]) == 0.0

    @pytest.mark.parametrize(
        "a,b",
        [
            ([1e150, 1e150], [1e150, 1e150]),
            ([0.1, 0.2, 0.3], [0.1000001, 0.2, 0.3]),
            ([5.0, -3.0, 2.0], [-2.0, 7.0, 1.0]),
        ],
    )
    def test_bounds(self, a, b):
        similarity = cosine_similarity(a, b)
        assert -1.0 <= similarity <= 1.0
        assert not math.isnan(similarity)

    def test_scale_invariance(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)


class TestRankCandidates:
    """Threshold, count and ordering contract."""

    @pytest.fixture
    def candidates(self) -> List[ChunkVector]:
        return [
            make_vector("a", [1.0, 0.0, 0.0], chunk_index=0),
            make_vector("b", [0.0, 1.0, 0.0], chunk_index=1),
            make_vector("c", [0.7071, 0.7071, 0.0], chunk_index=2),
            make_vector("d", [0.9, 0.1, 0.0], chunk_index=3),
        ]

    def test_threshold_filters_and_sorts(self, candidates):
        results = rank_candidates([1.0, 0.0, 0.0], candidates, match_threshold=0.5, match_count=10)

        assert [r.chunk_id for r in results] == ["a", "d", "c"]
        assert all(r.similarity >= 0.5 for r in results)
        assert [r.similarity for r in results] == sorted((r.similarity for r in results), reverse=True)

    def test_count_truncates(self, candidates):
        results = rank_candidates([1.0, 0.0, 0.0], candidates, match_threshold=0.0, match_count=2)

        assert [r.chunk_id for r in results] == ["a", "d"]

    def test_threshold_is_inclusive(self):
        candidates = [make_vector("exact", [1.0, 0.0])]

        results = rank_candidates([1.0, 0.0], candidates, match_threshold=1.0, match_count=1)

        assert [r.chunk_id for r in results] == ["exact"]

    def test_ties_break_by_chunk_index(self):
        candidates = [
            make_vector("late", [1.0, 0.0], chunk_index=7),
            make_vector("early", [2.0, 0.0], chunk_index=1),
            make_vector("middle", [3.0, 0.0], chunk_index=4),
        ]

        results = rank_candidates([1.0, 0.0], candidates, match_threshold=0.0, match_count=3)

        assert [r.chunk_id for r in results] == ["early", "middle", "late"]

    def test_ties_on_chunk_index_break_by_chunk_id(self):
        candidates = [make_vector("y", [1.0, 0.0]), make_vector("x", [1.0, 0.0])]

        results = rank_candidates([1.0, 0.0], candidates, match_threshold=0.0, match_count=2)

        assert [r.chunk_id for r in results] == ["x", "y"]

    def test_ranking_is_deterministic(self, candidates):
        first = rank_candidates([0.6, 0.4, 0.0], candidates, 0.0, 4)
        second = rank_candidates([0.6, 0.4, 0.0], list(reversed(candidates)), 0.0, 4)

        assert [r.chunk_id for r in first] == [r.chunk_id for r in second]

    def test_no_candidates(self):
        assert rank_candidates([1.0, 0.0], [], 0.0, 5) == []


class TestSearchOptions:
    def test_defaults(self):
        options = SearchOptions()
        assert options.match_threshold == 0.5
        assert options.match_count == 5

    @pytest.mark.parametrize(
        "threshold,count",
        [(0.5, 0), (0.5, -1), (-0.1, 5), (1.1, 5), (0.5, 2.5)],
    )
    def test_invalid_options(self, threshold, count):
        with pytest.raises(InvalidQueryError):
            SearchOptions(match_threshold=threshold, match_count=count)

    def test_boundaries_are_valid(self):
        SearchOptions(match_threshold=0.0, match_count=1)
        SearchOptions(match_threshold=1.0, match_count=100)


class TestLinearSearchIndex:
    """Test suite for LinearSearchIndex."""

    @pytest.fixture
    def index(self) -> LinearSearchIndex:
        return LinearSearchIndex(dimension=3, exam_id="exam-1")

    def test_index_properties(self, index: LinearSearchIndex):
        assert index.index_type == IndexType.LINEAR_SEARCH
        assert index.dimension == 3
        assert index.vectors == []

    def test_add_and_search(self, index: LinearSearchIndex):
        index.add_vectors([make_vector("a", [1.0, 0.0, 0.0]), make_vector("b", [0.0, 1.0, 0.0], chunk_index=1)])

        results = index.search([0.0, 1.0, 0.0], match_threshold=0.5, match_count=5)

        assert [r.chunk_id for r in results] == ["b"]
        assert results[0].similarity == pytest.approx(1.0)

    def test_search_empty_index(self, index: LinearSearchIndex):
        assert index.search([1.0, 0.0], match_threshold=0.0, match_count=5) == []

    def test_add_mismatched_vectors_leaves_index_unchanged(self, index: LinearSearchIndex):
        index.add_vectors([make_vector("a", [1.0, 0.0, 0.0])])

        with pytest.raises(DimensionMismatchError):
            index.add_vectors([make_vector("b", [1.0, 0.0, 0.0]), make_vector("c", [1.0, 0.0])])

        assert [v.chunk_id for v in index.vectors] == ["a"]

    def test_query_dimension_mismatch(self, index: LinearSearchIndex):
        index.add_vectors([make_vector("a", [1.0, 0.0, 0.0])])

        with pytest.raises(DimensionMismatchError) as exc_info:
            index.search([1.0, 0.0], match_threshold=0.0, match_count=1)

        assert exc_info.value.details == {"exam_id": "exam-1", "expected": 3, "actual": 2}
