"""Embedding infrastructure for text-to-vector conversion."""

from .base import EmbeddingClient
from .service import EmbeddingService, get_embedding_service

__all__ = ["EmbeddingClient", "EmbeddingService", "get_embedding_service"]
