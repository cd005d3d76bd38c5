"""Render retrieved material into a single prompt-ready context string."""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...infrastructure.config.settings import get_settings
from ...infrastructure.indexing.base import SearchResult
from ..common.exceptions import InvalidInputError

DEFAULT_DELIMITER = "\n\n---\n\n"

_SINGLE_LETTER_RUN = re.compile(r"\b([A-Za-z])(?:\s+\1){2,}\b")
_REPEATED_CHAR = re.compile(r"(.)\1{4,}")
_REPEATED_WORD = re.compile(r"\b(\w+)(?:\s+\1){3,}\b", re.IGNORECASE)
_INLINE_WHITESPACE = re.compile(r"[ \t]{2,}")
_BLANK_LINES = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class ContextOptions:
    """How retrieved results are rendered.

    ``max_chars`` of None leaves the context unbounded. ``clean_noise`` strips
    extraction artefacts (letter runs, repeated characters and words) from
    each result before rendering.
    """

    max_chars: Optional[int] = None
    clean_noise: bool = False
    delimiter: str = DEFAULT_DELIMITER

    def __post_init__(self) -> None:
        if self.max_chars is not None and self.max_chars < 1:
            raise InvalidInputError(f"max_chars must be >= 1 or None, got {self.max_chars!r}")

    @classmethod
    def from_settings(cls) -> "ContextOptions":
        settings = get_settings()
        return cls(max_chars=settings.CONTEXT_MAX_CHARS or None, clean_noise=settings.CONTEXT_CLEAN_NOISE)


def clean_context(text: str) -> str:
    """Remove noise typical of PDF and slide extraction."""
    if not text:
        return ""

    cleaned = _SINGLE_LETTER_RUN.sub("", text)
    cleaned = _REPEATED_CHAR.sub("", cleaned)
    cleaned = _REPEATED_WORD.sub(r"\1", cleaned)
    cleaned = _INLINE_WHITESPACE.sub(" ", cleaned)
    cleaned = _BLANK_LINES.sub("\n\n", cleaned)
    return cleaned.strip()


def _display_name(result: SearchResult) -> str:
    if result.metadata.file_name:
        return result.metadata.file_name
    return result.metadata.file_url.rstrip("/").split("/")[-1] or "unknown"


def _render(number: int, result: SearchResult, clean_noise: bool) -> str:
    metadata = result.metadata
    content = clean_context(result.content) if clean_noise else result.content
    header = (
        f"[Material {number}: {_display_name(result)} "
        f"(chunk {metadata.chunk_index}, chars {metadata.start_char}-{metadata.end_char})]"
    )
    return f"{header}\n{content}"


def assemble_context(results: Sequence[SearchResult], options: Optional[ContextOptions] = None) -> str:
    """Join results, in the order given, into one labelled context block.

    Returns an empty string when there are no results. Under a ``max_chars``
    budget, blocks that would overflow it are dropped; a first block that is
    larger than the whole budget is truncated instead.
    """
    options = options or ContextOptions()
    if not results:
        return ""

    blocks: List[str] = []
    used = 0
    for number, result in enumerate(results, start=1):
        block = _render(number, result, options.clean_noise)

        if options.max_chars is not None:
            cost = len(block) + (len(options.delimiter) if blocks else 0)
            if used + cost > options.max_chars:
                if not blocks:
                    blocks.append(block[: options.max_chars])
                    used = options.max_chars
                continue
            used += cost

        blocks.append(block)

    return options.delimiter.join(blocks)
