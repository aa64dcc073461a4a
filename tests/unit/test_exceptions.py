"""
Test suite for the exception hierarchy.

System role: Verification of error messages and context details
"""

import uuid

import pytest

from segment_index.boundary.vdb.vector_schemas import BatchEntryError, BatchResult
from segment_index.core.exceptions import (
    BatchPartialFailureError,
    DimensionMismatchError,
    IndexUnavailableError,
    InvalidInputError,
    SegmentIndexException,
    StorageError,
)


class TestExceptions:
    """Test suite for SegmentIndexException subclasses."""

    def test_str_should_include_details(self) -> None:
        """Test details are appended to the message."""
        error = StorageError("Segment store insert failed", operation="insert")

        assert str(error) == "Segment store insert failed | Details: {'operation': 'insert'}"

    def test_str_should_be_message_without_details(self) -> None:
        """Test bare message when no context was given."""
        assert str(IndexUnavailableError("no vectors")) == "no vectors"

    def test_dimension_mismatch_should_describe_both_sizes(self) -> None:
        """Test the message names expected and actual dimensions."""
        error = DimensionMismatchError(expected=1536, actual=512)

        assert error.message == "Vector dimension mismatch: expected 1536, got 512"
        assert error.details["field"] == "vector"
        assert isinstance(error, InvalidInputError)

    def test_all_errors_should_share_base(self) -> None:
        """Test callers can catch every engine error at once."""
        for error in (
            InvalidInputError("x"),
            StorageError("x"),
            IndexUnavailableError("x"),
            BatchPartialFailureError([]),
        ):
            assert isinstance(error, SegmentIndexException)


class TestBatchResult:
    """Test suite for BatchResult.raise_for_failures()."""

    def test_raise_for_failures_should_carry_entry_errors(self) -> None:
        """Test rejected batches raise with their per-entry failures."""
        # Arrange
        failure = BatchEntryError(index=1, segment_id=uuid.uuid4(), reason="Segment not found")
        result = BatchResult(ok=False, failures=[failure])

        # Act / Assert
        with pytest.raises(BatchPartialFailureError) as exc_info:
            result.raise_for_failures()

        assert exc_info.value.failures == [failure]
        assert exc_info.value.details["failed_entries"] == 1

    def test_raise_for_failures_should_pass_on_success(self) -> None:
        """Test successful batches do not raise."""
        BatchResult(ok=True, applied=3).raise_for_failures()
