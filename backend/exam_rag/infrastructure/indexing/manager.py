"""In-memory material store keeping one vector index per exam."""

import asyncio
import uuid
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from .base import (
    DEFAULT_MATCH_COUNT,
    DEFAULT_MATCH_THRESHOLD,
    ChunkMetadata,
    ChunkVector,
    MaterialStore,
    SearchResult,
    validate_query_params,
)
from .linear_search import LinearSearchIndex

logger = get_logger(__name__)


class IndexManager(MaterialStore):
    """Manages vector indexes for exams.

    - One LinearSearchIndex per exam, so a query can only ever see the
      vectors of the exam it names
    - Writes to an exam are serialized by a per-exam lock; queries never wait
      on it
    - Writes build the new vector list off to the side and swap it in, so a
      failed write leaves the exam untouched and a successful one is visible
      at once
    """

    def __init__(self):
        """Initialize the index manager."""
        self._indexes: Dict[str, LinearSearchIndex] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, exam_id: str) -> asyncio.Lock:
        if exam_id not in self._locks:
            self._locks[exam_id] = asyncio.Lock()
        return self._locks[exam_id]

    async def insert_many(
        self,
        exam_id: str,
        entries: Sequence[tuple[str, List[float], ChunkMetadata]],
        replace_file_url: Optional[str] = None,
    ) -> List[str]:
        async with self._lock_for(exam_id):
            current = self._indexes.get(exam_id)
            remaining = list(current.vectors) if current else []
            if replace_file_url is not None:
                remaining = [vector for vector in remaining if vector.metadata.file_url != replace_file_url]

            if not entries:
                self._swap(exam_id, current.dimension if current else 0, remaining)
                return []

            # The first write to an empty exam establishes its dimension.
            dimension = current.dimension if current and remaining else len(entries[0][1])

            new_vectors = [
                ChunkVector(
                    chunk_id=str(uuid.uuid4()),
                    exam_id=exam_id,
                    content=text,
                    embedding=list(embedding),
                    metadata=metadata,
                )
                for text, embedding, metadata in entries
            ]

            index = LinearSearchIndex(dimension=dimension, exam_id=exam_id)
            index.add_vectors(remaining)
            index.add_vectors(new_vectors)
            self._indexes[exam_id] = index

        logger.debug(
            "Inserted chunk vectors",
            extra={"exam_id": exam_id, "inserted": len(new_vectors), "total": len(index.vectors)},
        )
        return [vector.chunk_id for vector in new_vectors]

    def _swap(self, exam_id: str, dimension: int, vectors: List[ChunkVector]) -> None:
        if not vectors:
            self._indexes.pop(exam_id, None)
            return
        index = LinearSearchIndex(dimension=dimension, exam_id=exam_id)
        index.add_vectors(vectors)
        self._indexes[exam_id] = index

    async def query(
        self,
        exam_id: str,
        query_embedding: List[float],
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
    ) -> List[SearchResult]:
        validate_query_params(match_threshold, match_count)

        index = self._indexes.get(exam_id)
        if index is None:
            return []

        return index.search(query_embedding, match_threshold, match_count)

    async def delete_file(self, exam_id: str, file_url: str) -> int:
        async with self._lock_for(exam_id):
            current = self._indexes.get(exam_id)
            if current is None:
                return 0
            remaining = [vector for vector in current.vectors if vector.metadata.file_url != file_url]
            removed = len(current.vectors) - len(remaining)
            self._swap(exam_id, current.dimension, remaining)
        return removed

    async def delete_exam(self, exam_id: str) -> int:
        async with self._lock_for(exam_id):
            current = self._indexes.pop(exam_id, None)
        self._locks.pop(exam_id, None)
        return len(current.vectors) if current else 0

    async def count(self, exam_id: str) -> int:
        index = self._indexes.get(exam_id)
        return len(index.vectors) if index else 0
