"""Embedding client capability interface."""

from typing import List, Protocol, runtime_checkable


@runtime_checkable
class EmbeddingClient(Protocol):
    """Anything that maps text to fixed-dimension vectors.

    Implementations raise ``InvalidInputError`` for blank text,
    ``EmbeddingError`` for provider failures and ``EmbeddingTimeoutError``
    when a call exceeds its time budget. They do not retry or cache.
    """

    @property
    def embedding_dimension(self) -> int: ...

    async def embed_text(self, text: str) -> List[float]: ...

    async def embed_texts(self, texts: List[str]) -> List[List[float]]: ...
