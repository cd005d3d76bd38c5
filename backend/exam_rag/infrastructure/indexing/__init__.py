"""Vector indexing and material storage."""

from .base import ChunkMetadata, ChunkVector, MaterialStore, SearchOptions, SearchResult, VectorIndex
from .linear_search import LinearSearchIndex, cosine_similarity, rank_candidates
from .manager import IndexManager

__all__ = [
    "ChunkMetadata",
    "ChunkVector",
    "MaterialStore",
    "SearchOptions",
    "SearchResult",
    "VectorIndex",
    "LinearSearchIndex",
    "IndexManager",
    "cosine_similarity",
    "rank_candidates",
]
