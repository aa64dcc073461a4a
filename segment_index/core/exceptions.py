"""
Exception hierarchy for the segment index.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the engine
"""

from typing import Any


class SegmentIndexException(Exception):
    """Base exception for all segment index errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidInputError(SegmentIndexException):
    """Raised when caller input fails validation (empty text, bad filters)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid input error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class DimensionMismatchError(InvalidInputError):
    """Raised when a vector does not have the configured dimension."""

    def __init__(
        self,
        expected: int,
        actual: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize dimension mismatch error.

        Args:
            expected: Configured embedding dimension
            actual: Length of the rejected vector
            details: Additional context
        """
        details = details or {}
        details["expected"] = expected
        details["actual"] = actual
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension mismatch: expected {expected}, got {actual}",
            field="vector",
            details=details,
        )


class StorageError(SegmentIndexException):
    """Raised when the backing store fails; callers may retry."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize storage error.

        Args:
            message: Error message
            operation: Store operation that failed (insert, fetch, update, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class IndexUnavailableError(SegmentIndexException):
    """Raised by an ANN index that cannot answer; absorbed by the planner."""

    pass


class IndexBuildAbortedError(SegmentIndexException):
    """Raised inside a rebuild when an abort was requested."""

    pass


class BatchPartialFailureError(SegmentIndexException):
    """Raised by BatchResult.raise_for_failures when a batch was rejected."""

    def __init__(self, failures: list[Any], details: dict[str, Any] | None = None) -> None:
        """
        Initialize batch failure error.

        Args:
            failures: Per-entry errors (BatchEntryError models)
            details: Additional context
        """
        details = details or {}
        details["failed_entries"] = len(failures)
        self.failures = failures
        super().__init__("Embedding batch rejected; nothing was applied", details)
