"""Linear search vector index implementation."""

from typing import List, Sequence

import numpy as np

from .base import ChunkVector, IndexType, SearchResult, VectorIndex


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Calculate cosine similarity between two vectors.

    Formula: cos(θ) = (A · B) / (||A|| ||B||)

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero magnitude
    """
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)

    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0

    return float(np.clip(np.dot(a, b) / magnitude, -1.0, 1.0))


def score_candidates(query_embedding: Sequence[float], candidates: Sequence[ChunkVector]) -> np.ndarray:
    """Cosine similarity of the query against every candidate, in candidate order."""
    if not candidates:
        return np.empty(0, dtype=np.float64)

    query = np.asarray(query_embedding, dtype=np.float64)
    matrix = np.asarray([candidate.embedding for candidate in candidates], dtype=np.float64)

    magnitudes = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query

    similarities = np.zeros(len(candidates), dtype=np.float64)
    nonzero = magnitudes > 0.0
    similarities[nonzero] = dots[nonzero] / magnitudes[nonzero]

    return np.clip(similarities, -1.0, 1.0)


def rank_candidates(
    query_embedding: Sequence[float],
    candidates: Sequence[ChunkVector],
    match_threshold: float,
    match_count: int,
) -> List[SearchResult]:
    """Score, filter and order candidates.

    Only candidates with similarity >= match_threshold are kept. Results are
    sorted by similarity descending, then chunk index and chunk id ascending,
    and truncated to match_count.
    """
    similarities = score_candidates(query_embedding, candidates)

    eligible = [
        (float(similarity), candidate)
        for similarity, candidate in zip(similarities, candidates)
        if similarity >= match_threshold
    ]
    eligible.sort(key=lambda item: (-item[0], item[1].metadata.chunk_index, item[1].chunk_id))

    return [
        SearchResult(
            chunk_id=candidate.chunk_id,
            content=candidate.content,
            similarity=similarity,
            metadata=candidate.metadata,
        )
        for similarity, candidate in eligible[:match_count]
    ]


class LinearSearchIndex(VectorIndex):
    """Linear search vector index using brute-force cosine similarity.

    Compares the query against every vector of the exam. Exact results, no
    build phase, O(n * d) per query, which is fine for per-exam corpora of a
    few thousand chunks.
    """

    def __init__(self, dimension: int, exam_id: str = ""):
        super().__init__(dimension)
        self.exam_id = exam_id

    @property
    def index_type(self) -> IndexType:
        """Return the type of this index."""
        return IndexType.LINEAR_SEARCH

    def add_vectors(self, vectors: List[ChunkVector]) -> None:
        """Add vectors after validating every one of them.

        Validation runs before the list is touched, so a mismatch leaves the
        index unchanged.
        """
        for vector in vectors:
            self._validate_embedding(vector.embedding, self.exam_id)

        # Rebinding instead of extending keeps readers iterating over a consistent list.
        self.vectors = self.vectors + list(vectors)

    def search(self, query_embedding: List[float], match_threshold: float, match_count: int) -> List[SearchResult]:
        """Search for the most similar vectors using linear search."""
        if not self.vectors:
            return []

        self._validate_embedding(query_embedding, self.exam_id)

        return rank_candidates(query_embedding, self.vectors, match_threshold, match_count)
