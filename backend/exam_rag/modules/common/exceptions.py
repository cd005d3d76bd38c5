"""Domain exception classes for retrieval errors.

Every error carries a ``retryable`` flag so callers can decide on a backoff
policy without matching on concrete classes, and an optional ``details``
mapping with the context (exam, file, dimensions) the error was raised in.
"""

from typing import Any, Dict


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    retryable: bool = False

    def __init__(self, message: str = "", **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class InvalidInputError(DomainError):
    """Raised when text is blank or options are out of range. Always a caller bug."""

    pass


class InvalidQueryError(InvalidInputError):
    """Raised when similarity query options (threshold, count) are out of range."""

    pass


class EmbeddingError(DomainError):
    """Raised when the embedding provider fails."""

    retryable = True


class EmbeddingTimeoutError(DomainError):
    """Raised when an embedding call does not finish within its time budget.

    Kept apart from EmbeddingError so callers can apply a different backoff.
    """

    retryable = True


class DimensionMismatchError(DomainError):
    """Raised when a vector's length differs from the dimension established for an exam."""

    pass


class StoreError(DomainError):
    """Raised when the material store fails to read or write."""

    retryable = True
