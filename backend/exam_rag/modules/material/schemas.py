"""Pydantic schemas for material ingestion and search responses."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ...infrastructure.indexing.base import SearchResult


class MaterialSearchResult(BaseModel):
    """Schema for an individual search result."""

    model_config = ConfigDict(from_attributes=True)

    chunk_id: str
    content: str
    similarity: float = Field(description="Cosine similarity score (-1 to 1)")
    metadata: Dict[str, Any]

    @classmethod
    def from_result(cls, result: SearchResult) -> "MaterialSearchResult":
        return cls(
            chunk_id=result.chunk_id,
            content=result.content,
            similarity=result.similarity,
            metadata=result.metadata.to_dict(),
        )


class SearchResponse(BaseModel):
    """Schema for a material search response."""

    results: List[MaterialSearchResult]
    assembled_context: str = Field(description="Results rendered as one context block, empty when nothing matched")
    query_time_ms: float = Field(description="Query execution time in milliseconds")

