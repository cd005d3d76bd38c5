"""Material store backed by the ``exam_material_chunks`` table."""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...modules.common.exceptions import StoreError
from ...modules.material.crud import material_chunk_crud
from ...modules.material.models import MaterialChunk
from ..logging import get_logger
from .base import (
    DEFAULT_MATCH_COUNT,
    DEFAULT_MATCH_THRESHOLD,
    ChunkMetadata,
    ChunkVector,
    MaterialStore,
    SearchResult,
    check_dimension,
    validate_query_params,
)
from .linear_search import rank_candidates

logger = get_logger(__name__)


class SQLMaterialStore(MaterialStore):
    """Material store on top of SQLAlchemy.

    Similarity is computed by loading the exam's rows and scoring them with
    the same exact ranking the in-memory index uses. Each ``insert_many``
    runs in a single transaction, so a document is either fully stored or
    not at all.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str, exam_id: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Material store {operation} failed", extra={"exam_id": exam_id, "error": str(e)})
            raise StoreError(f"Material store {operation} failed for exam {exam_id}: {e}", exam_id=exam_id) from e

    async def insert_many(
        self,
        exam_id: str,
        entries: Sequence[tuple[str, List[float], ChunkMetadata]],
        replace_file_url: Optional[str] = None,
    ) -> List[str]:
        chunk_ids = [str(uuid.uuid4()) for _ in entries]

        async with self._session("insert", exam_id) as db:
            async with db.begin():
                if replace_file_url is not None:
                    await db.execute(
                        delete(MaterialChunk).where(
                            MaterialChunk.exam_id == exam_id, MaterialChunk.file_url == replace_file_url
                        )
                    )

                if entries:
                    established = await db.scalar(
                        select(MaterialChunk.dimension).where(MaterialChunk.exam_id == exam_id).limit(1)
                    )
                    dimension = established if established is not None else len(entries[0][1])

                    rows = []
                    for chunk_id, (text, embedding, metadata) in zip(chunk_ids, entries):
                        check_dimension(embedding, dimension, exam_id)
                        rows.append(
                            MaterialChunk(
                                id=chunk_id,
                                exam_id=exam_id,
                                file_name=metadata.file_name,
                                file_url=metadata.file_url,
                                chunk_index=metadata.chunk_index,
                                start_char=metadata.start_char,
                                end_char=metadata.end_char,
                                content=text,
                                embedding=list(embedding),
                                dimension=len(embedding),
                            )
                        )
                    db.add_all(rows)

        return chunk_ids

    async def query(
        self,
        exam_id: str,
        query_embedding: List[float],
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
    ) -> List[SearchResult]:
        validate_query_params(match_threshold, match_count)

        async with self._session("query", exam_id) as db:
            result = await db.execute(select(MaterialChunk).where(MaterialChunk.exam_id == exam_id))
            rows = result.scalars().all()

        if not rows:
            return []

        check_dimension(query_embedding, rows[0].dimension, exam_id)

        candidates = [
            ChunkVector(
                chunk_id=row.id,
                exam_id=row.exam_id,
                content=row.content,
                embedding=row.embedding,
                metadata=ChunkMetadata(
                    file_name=row.file_name,
                    file_url=row.file_url,
                    chunk_index=row.chunk_index,
                    start_char=row.start_char,
                    end_char=row.end_char,
                ),
            )
            for row in rows
        ]
        return rank_candidates(query_embedding, candidates, match_threshold, match_count)

    async def delete_file(self, exam_id: str, file_url: str) -> int:
        async with self._session("delete", exam_id) as db:
            async with db.begin():
                result = await db.execute(
                    delete(MaterialChunk).where(MaterialChunk.exam_id == exam_id, MaterialChunk.file_url == file_url)
                )
        return result.rowcount or 0

    async def delete_exam(self, exam_id: str) -> int:
        async with self._session("delete", exam_id) as db:
            async with db.begin():
                result = await db.execute(delete(MaterialChunk).where(MaterialChunk.exam_id == exam_id))
        return result.rowcount or 0

    async def count(self, exam_id: str) -> int:
        async with self._session("count", exam_id) as db:
            return await material_chunk_crud.count(db=db, exam_id=exam_id)
