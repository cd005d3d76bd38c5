"""Query-side retrieval: embed a question and rank an exam's material against it."""

import asyncio
from typing import List, Optional

from ...infrastructure.embedding.base import EmbeddingClient
from ...infrastructure.indexing.base import MaterialStore, SearchOptions, SearchResult
from ...infrastructure.logging import get_logger
from ..common.exceptions import EmbeddingTimeoutError, InvalidInputError

logger = get_logger(__name__)


class Retriever:
    """Answers "which material chunks are relevant to this question?" for one exam.

    The retriever does no retries and never turns a failure into an empty
    result: an empty list always means that nothing cleared the threshold.
    """

    def __init__(self, embedder: EmbeddingClient, store: MaterialStore):
        self.embedder = embedder
        self.store = store

    async def retrieve(
        self,
        query: str,
        exam_id: str,
        options: Optional[SearchOptions] = None,
        timeout: Optional[float] = None,
    ) -> List[SearchResult]:
        """Return up to ``match_count`` results with similarity >= ``match_threshold``.

        Args:
            query: Natural-language question
            exam_id: Exam whose material is searched
            options: Threshold and count, defaults when omitted
            timeout: Seconds allowed for embedding the query

        Raises:
            InvalidInputError: If the query is blank, before anything is embedded
            EmbeddingTimeoutError: If embedding the query exceeds ``timeout``
        """
        if not query or not query.strip():
            raise InvalidInputError("Query cannot be empty", exam_id=exam_id)

        options = options or SearchOptions()

        embedding_call = self.embedder.embed_text(query)
        try:
            if timeout is not None:
                query_embedding = await asyncio.wait_for(embedding_call, timeout=timeout)
            else:
                query_embedding = await embedding_call
        except asyncio.TimeoutError as e:
            logger.warning("Query embedding timed out", extra={"exam_id": exam_id, "timeout_s": timeout})
            raise EmbeddingTimeoutError(
                f"Query embedding did not complete within {timeout}s", exam_id=exam_id, timeout=timeout
            ) from e

        results = await self.store.query(
            exam_id,
            query_embedding,
            match_threshold=options.match_threshold,
            match_count=options.match_count,
        )

        logger.debug(
            "Retrieved material",
            extra={
                "exam_id": exam_id,
                "result_count": len(results),
                "top_similarity": results[0].similarity if results else None,
            },
        )
        return results
