"""Abstract base classes and value types for exam material indexing."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ...modules.common.exceptions import DimensionMismatchError, InvalidQueryError

DEFAULT_MATCH_THRESHOLD = 0.5
DEFAULT_MATCH_COUNT = 5


class IndexType(str, Enum):
    """Supported index types."""

    LINEAR_SEARCH = "linear_search"


@dataclass(frozen=True)
class ChunkMetadata:
    """Provenance of a chunk inside its source file."""

    file_name: str
    file_url: str
    chunk_index: int
    start_char: int
    end_char: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChunkVector:
    """A persisted material chunk: text, embedding and provenance, scoped to one exam."""

    chunk_id: str
    exam_id: str
    content: str
    embedding: List[float]
    metadata: ChunkMetadata


@dataclass
class SearchResult:
    """Represents a search result with similarity score."""

    chunk_id: str
    content: str
    similarity: float
    metadata: ChunkMetadata


@dataclass(frozen=True)
class SearchOptions:
    """Per-query precision/recall knobs.

    Raises:
        InvalidQueryError: If match_count < 1 or match_threshold is outside [0, 1]
    """

    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    match_count: int = DEFAULT_MATCH_COUNT

    def __post_init__(self) -> None:
        validate_query_params(self.match_threshold, self.match_count)


def validate_query_params(match_threshold: float, match_count: int) -> None:
    """Reject out-of-range query options."""
    if isinstance(match_count, bool) or not isinstance(match_count, int) or match_count < 1:
        raise InvalidQueryError(f"match_count must be an integer >= 1, got {match_count!r}", match_count=match_count)
    if not 0.0 <= match_threshold <= 1.0:
        raise InvalidQueryError(
            f"match_threshold must be between 0 and 1, got {match_threshold!r}", match_threshold=match_threshold
        )


def check_dimension(embedding: Sequence[float], dimension: int, exam_id: str) -> None:
    """Raise DimensionMismatchError if an embedding does not match the exam's dimension."""
    if len(embedding) != dimension:
        raise DimensionMismatchError(
            f"Embedding dimension {len(embedding)} does not match dimension {dimension} established for exam {exam_id}",
            exam_id=exam_id,
            expected=dimension,
            actual=len(embedding),
        )


class VectorIndex(ABC):
    """Abstract base class for the vectors of a single exam.

    An index holds one exam's chunks; isolation between exams comes from
    keeping one index per exam.
    """

    def __init__(self, dimension: int):
        """Initialize the vector index.

        Args:
            dimension: The dimension of the vectors to be indexed
        """
        self.dimension = dimension
        self.vectors: List[ChunkVector] = []

    @property
    @abstractmethod
    def index_type(self) -> IndexType:
        """Return the type of this index."""
        pass

    @abstractmethod
    def add_vectors(self, vectors: List[ChunkVector]) -> None:
        """Add vectors to the index; all of them or none."""
        pass

    @abstractmethod
    def search(self, query_embedding: List[float], match_threshold: float, match_count: int) -> List[SearchResult]:
        """Return up to match_count results with similarity >= match_threshold, best first."""
        pass

    def _validate_embedding(self, embedding: List[float], exam_id: str) -> None:
        check_dimension(embedding, self.dimension, exam_id)


class MaterialStore(ABC):
    """Durable mapping from (exam, chunk) to (text, vector, provenance).

    Implementations must keep exams strictly isolated, make each
    ``insert_many`` call atomic, and make records visible to queries as soon
    as the insert call returns.
    """

    async def insert(self, exam_id: str, chunk: Any, embedding: List[float], metadata: ChunkMetadata) -> str:
        """Insert a single chunk and return its id.

        Args:
            exam_id: Owning exam
            chunk: A segmenter Chunk (anything with a ``text`` attribute)
            embedding: Vector for the chunk text
            metadata: Provenance of the chunk
        """
        ids = await self.insert_many(exam_id, [(chunk.text, embedding, metadata)])
        return ids[0]

    @abstractmethod
    async def insert_many(
        self,
        exam_id: str,
        entries: Sequence[tuple[str, List[float], ChunkMetadata]],
        replace_file_url: Optional[str] = None,
    ) -> List[str]:
        """Insert (text, embedding, metadata) entries atomically.

        Args:
            exam_id: Owning exam
            entries: Entries in chunk order
            replace_file_url: Remove existing chunks of this file in the same atomic step

        Returns:
            Chunk ids in entry order

        Raises:
            DimensionMismatchError: If any embedding differs from the exam's dimension
        """
        pass

    @abstractmethod
    async def query(
        self,
        exam_id: str,
        query_embedding: List[float],
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
    ) -> List[SearchResult]:
        """Rank an exam's chunks by cosine similarity to the query vector.

        Raises:
            InvalidQueryError: If the options are out of range
            DimensionMismatchError: If the query vector differs from the exam's dimension
        """
        pass

    @abstractmethod
    async def delete_file(self, exam_id: str, file_url: str) -> int:
        """Delete all chunks of one file in an exam; returns the number removed."""
        pass

    @abstractmethod
    async def delete_exam(self, exam_id: str) -> int:
        """Delete all chunks of an exam; returns the number removed."""
        pass

    @abstractmethod
    async def count(self, exam_id: str) -> int:
        """Number of chunks stored for an exam."""
        pass
