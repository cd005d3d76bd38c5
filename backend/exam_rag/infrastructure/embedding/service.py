"""Embedding service for text-to-vector conversion using sentence-transformers."""

import asyncio
from functools import lru_cache
from typing import Any, List, Optional, cast

from sentence_transformers import SentenceTransformer

from ...modules.common.exceptions import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingTimeoutError,
    InvalidInputError,
)
from ..config.settings import get_settings
from ..logging import get_logger

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating vector embeddings from text.

    Uses sentence-transformers (all-mpnet-base-v2 by default, 768 dimensions)
    with normalized output so cosine similarity equals the dot product.

    Features:
    - Lazy model loading for faster startup
    - Batch processing for ingestion
    - Per-call timeout so a slow model never blocks a caller indefinitely
    """

    def __init__(
        self,
        model_name: str = "all-mpnet-base-v2",
        dimension: int = 768,
        batch_size: int = 32,
        timeout: Optional[float] = 30.0,
    ):
        """Initialize embedding service.

        Args:
            model_name: HuggingFace model name for sentence transformers
            dimension: Dimension of the vectors the model produces
            batch_size: Encode batch size for ``embed_texts``
            timeout: Seconds allowed per encode call, None for no limit
        """
        self.model_name = model_name
        self.dimension = dimension
        self.batch_size = batch_size
        self.timeout = timeout
        self._model: Optional[SentenceTransformer] = None
        self._model_lock = asyncio.Lock()

    async def _get_model(self) -> SentenceTransformer:
        """Get model instance, loading it if necessary."""
        if self._model is None:
            async with self._model_lock:
                if self._model is None:
                    logger.info("Loading embedding model", extra={"model_name": self.model_name})
                    try:
                        model = cast(SentenceTransformer, await asyncio.to_thread(SentenceTransformer, self.model_name))
                    except Exception as e:
                        raise EmbeddingError(f"Failed to load embedding model {self.model_name}: {e}") from e
                    self._check_dimension(model)
                    self._model = model
        if self._model is None:
            raise EmbeddingError("Model failed to load")
        return self._model

    def _check_dimension(self, model: SentenceTransformer) -> None:
        """Refuse a model whose output length differs from the configured dimension."""
        actual = model.get_sentence_embedding_dimension()
        if actual is not None and actual != self.dimension:
            raise DimensionMismatchError(
                f"Model {self.model_name} produces {actual}-dimensional vectors, expected {self.dimension}",
                model_name=self.model_name,
                expected=self.dimension,
                actual=actual,
            )

    async def _encode(self, payload: Any, **encode_kwargs: Any) -> Any:
        model = await self._get_model()

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    model.encode,
                    payload,
                    convert_to_tensor=False,
                    normalize_embeddings=True,
                    **encode_kwargs,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Embedding call timed out", extra={"model_name": self.model_name, "timeout_s": self.timeout})
            raise EmbeddingTimeoutError(f"Embedding did not complete within {self.timeout}s", timeout=self.timeout) from e
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}", model_name=self.model_name) from e

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding for single text.

        Args:
            text: Text to embed, trimmed before encoding

        Returns:
            Embedding vector
        """
        if not text.strip():
            raise InvalidInputError("Text cannot be empty")

        embedding = await self._encode(text.strip())
        return cast(List[float], embedding.tolist())

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts (batch processing).

        Args:
            texts: List of texts to embed

        Returns:
            One embedding per input text, in input order
        """
        if not texts:
            return []

        if any(not text.strip() for text in texts):
            raise InvalidInputError("All texts must be non-empty")

        embeddings = await self._encode([text.strip() for text in texts], batch_size=self.batch_size)

        if hasattr(embeddings, "tolist"):
            result = cast(List[List[float]], embeddings.tolist())
        else:
            result = [emb.tolist() for emb in embeddings]

        if len(result) != len(texts):
            raise EmbeddingError(f"Requested {len(texts)} embeddings but received {len(result)}")
        return result

    @property
    def embedding_dimension(self) -> int:
        """Return the embedding dimension for this model."""
        return self.dimension

    async def is_loaded(self) -> bool:
        """Check if model is loaded."""
        return self._model is not None


@lru_cache()
def get_embedding_service() -> EmbeddingService:
    """Get the process-wide embedding service built from settings."""
    settings = get_settings()
    return EmbeddingService(
        model_name=settings.EMBEDDING_MODEL_NAME,
        dimension=settings.EMBEDDING_DIMENSION,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
    )
