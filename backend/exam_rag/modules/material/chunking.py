"""Split raw document text into overlapping, offset-exact chunks."""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ...infrastructure.config.settings import get_settings
from ...infrastructure.indexing.base import ChunkMetadata
from ..common.exceptions import InvalidInputError

DEFAULT_CHUNK_SIZE = 800
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice ``source[start_char:end_char]`` of a document."""

    text: str
    index: int
    start_char: int
    end_char: int

    def to_metadata(self, file_name: str, file_url: str) -> ChunkMetadata:
        return ChunkMetadata(
            file_name=file_name,
            file_url=file_url,
            chunk_index=self.index,
            start_char=self.start_char,
            end_char=self.end_char,
        )


@dataclass(frozen=True)
class ChunkingOptions:
    """Segmentation parameters.

    Raises:
        InvalidInputError: If chunk_size < 1, chunk_overlap is outside
            [0, chunk_size) or separator is empty
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
    separator: str = DEFAULT_SEPARATOR

    def __post_init__(self) -> None:
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            raise InvalidInputError(f"chunk_size must be an integer >= 1, got {self.chunk_size!r}")
        if (
            isinstance(self.chunk_overlap, bool)
            or not isinstance(self.chunk_overlap, int)
            or not 0 <= self.chunk_overlap < self.chunk_size
        ):
            raise InvalidInputError(
                f"chunk_overlap must be in [0, {self.chunk_size}), got {self.chunk_overlap!r}",
                chunk_overlap=self.chunk_overlap,
            )
        if not isinstance(self.separator, str) or not self.separator:
            raise InvalidInputError("separator cannot be empty")

    @classmethod
    def from_settings(cls) -> "ChunkingOptions":
        settings = get_settings()
        return cls(
            chunk_size=settings.CHUNK_SIZE,
            chunk_overlap=settings.CHUNK_OVERLAP,
            separator=settings.CHUNK_SEPARATOR,
        )


def _sections(text: str, separator: str) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) of the pieces between separators."""
    position = 0
    for section in text.split(separator):
        yield position, position + len(section)
        position += len(section) + len(separator)


def segment(text: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
    """Split text into chunks of at most ``chunk_size`` characters.

    Sections between separators are packed greedily into a buffer. When the
    next section does not fit, the buffer is emitted and the next one starts
    with the trailing ``chunk_overlap`` characters of the emitted chunk. A
    section too long for any buffer is cut into fixed windows advancing by
    ``chunk_size - chunk_overlap``.

    Every chunk is an exact slice of ``text``, the chunks cover the whole text
    without gaps and each chunk starts strictly after the previous one.
    """
    options = options or ChunkingOptions()
    size = options.chunk_size
    overlap = options.chunk_overlap

    if not text:
        return []
    if len(text) <= size:
        return [Chunk(text=text, index=0, start_char=0, end_char=len(text))]

    spans: List[Tuple[int, int]] = []

    def force_split(start: int, end: int) -> int:
        # Returns the start of the remainder, which is never empty.
        while end - start > size:
            spans.append((start, start + size))
            start += size - overlap
        return start

    buf_start, buf_end = 0, 0
    for _, section_end in _sections(text, options.separator):
        if section_end - buf_start <= size:
            buf_end = section_end
            continue

        if buf_end > buf_start:
            spans.append((buf_start, buf_end))
            # At least one character of progress past the emitted chunk's start.
            width = min(overlap, buf_end - buf_start - 1)
            if section_end - buf_end > size:
                buf_start = force_split(buf_end - width, section_end)
            else:
                width = min(width, size - (section_end - buf_end))
                buf_start = buf_end - width
        else:
            buf_start = force_split(buf_start, section_end)
        buf_end = section_end

    if buf_end > buf_start:
        spans.append((buf_start, buf_end))

    return [
        Chunk(text=text[start:end], index=index, start_char=start, end_char=end)
        for index, (start, end) in enumerate(spans)
    ]
