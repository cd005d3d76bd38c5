"""Caller-facing operations on exam material: ingest, search and delete."""

import time
from functools import lru_cache
from typing import List, Optional

from ...infrastructure.config.settings import StoreBackend, get_settings
from ...infrastructure.embedding import EmbeddingClient, get_embedding_service
from ...infrastructure.indexing.base import ChunkMetadata, MaterialStore, SearchOptions
from ...infrastructure.indexing.manager import IndexManager
from ...infrastructure.logging import get_logger
from ..common.exceptions import DomainError, EmbeddingError, InvalidInputError
from .chunking import ChunkingOptions, segment
from .context import ContextOptions, assemble_context
from .retriever import Retriever
from .schemas import MaterialSearchResult, SearchResponse

logger = get_logger(__name__)


class MaterialService:
    """Ingests exam documents and answers similarity searches over them."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: MaterialStore,
        batch_size: Optional[int] = None,
        query_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.embedder = embedder
        self.store = store
        self.batch_size = batch_size or settings.EMBEDDING_BATCH_SIZE
        self.query_timeout = query_timeout
        self.retriever = Retriever(embedder, store)

    async def ingest(
        self,
        exam_id: str,
        document_text: str,
        file_name: str,
        file_url: str,
        chunking: Optional[ChunkingOptions] = None,
    ) -> int:
        """Segment, embed and store one document for an exam.

        Earlier chunks of the same ``file_url`` are replaced in the same atomic
        write. Any failure aborts the whole document and nothing is stored.

        Returns:
            Number of chunks stored
        """
        start_time = time.time()

        try:
            if not document_text or not document_text.strip():
                raise InvalidInputError("Document text cannot be empty", exam_id=exam_id)

            # Whitespace-only chunks cannot be embedded.
            chunks = [
                chunk
                for chunk in segment(document_text, chunking or ChunkingOptions.from_settings())
                if chunk.text.strip()
            ]

            embeddings: List[List[float]] = []
            for offset in range(0, len(chunks), self.batch_size):
                batch = chunks[offset : offset + self.batch_size]
                vectors = await self.embedder.embed_texts([chunk.text for chunk in batch])
                if len(vectors) != len(batch):
                    raise EmbeddingError(
                        f"Requested {len(batch)} embeddings but received {len(vectors)}",
                        exam_id=exam_id,
                        expected=len(batch),
                        actual=len(vectors),
                    )
                embeddings.extend(vectors)

            entries: List[tuple[str, List[float], ChunkMetadata]] = [
                (chunk.text, embedding, chunk.to_metadata(file_name, file_url))
                for chunk, embedding in zip(chunks, embeddings)
            ]
            await self.store.insert_many(exam_id, entries, replace_file_url=file_url)
        except DomainError as e:
            e.details.setdefault("file_name", file_name)
            logger.error(
                "Material ingestion failed",
                extra={"exam_id": exam_id, "file_name": file_name, "error_type": type(e).__name__, "error": e.message},
            )
            raise

        logger.info(
            "Material ingested",
            extra={
                "exam_id": exam_id,
                "file_name": file_name,
                "chunk_count": len(entries),
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return len(entries)

    async def search(
        self,
        exam_id: str,
        query: str,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None,
        context: Optional[ContextOptions] = None,
    ) -> SearchResponse:
        """Retrieve the chunks of an exam most relevant to a question.

        Omitted threshold and count fall back to configuration. Pass
        ``match_threshold=0`` to see every candidate regardless of score.
        """
        settings = get_settings()
        options = SearchOptions(
            match_threshold=settings.MATCH_THRESHOLD if match_threshold is None else match_threshold,
            match_count=settings.MATCH_COUNT if match_count is None else match_count,
        )

        start_time = time.time()
        results = await self.retriever.retrieve(query, exam_id, options, timeout=self.query_timeout)
        assembled = assemble_context(results, context or ContextOptions.from_settings())
        query_time_ms = (time.time() - start_time) * 1000

        logger.info(
            "Material search completed",
            extra={
                "exam_id": exam_id,
                "result_count": len(results),
                "match_threshold": options.match_threshold,
                "duration_ms": round(query_time_ms, 2),
            },
        )

        return SearchResponse(
            results=[MaterialSearchResult.from_result(result) for result in results],
            assembled_context=assembled,
            query_time_ms=query_time_ms,
        )

    async def delete_file(self, exam_id: str, file_url: str) -> int:
        removed = await self.store.delete_file(exam_id, file_url)
        logger.info("Material file deleted", extra={"exam_id": exam_id, "file_url": file_url, "removed": removed})
        return removed

    async def delete_exam(self, exam_id: str) -> int:
        removed = await self.store.delete_exam(exam_id)
        logger.info("Exam material deleted", extra={"exam_id": exam_id, "removed": removed})
        return removed


def build_store() -> MaterialStore:
    """Create the material store selected by ``MATERIAL_STORE_BACKEND``."""
    settings = get_settings()
    if settings.MATERIAL_STORE_BACKEND == StoreBackend.DATABASE:
        from ...infrastructure.database.session import get_session_factory
        from ...infrastructure.indexing.sql_store import SQLMaterialStore

        return SQLMaterialStore(get_session_factory())
    return IndexManager()


@lru_cache()
def get_material_service() -> MaterialService:
    """Get the process-wide material service."""
    return MaterialService(embedder=get_embedding_service(), store=build_store())
