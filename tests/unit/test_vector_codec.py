"""
Test suite for the vector codec.

Tests dimension validation, clamped cosine similarity and float32 blob
serialization.

System role: Verification of embedding math and storage format
"""

import math

import numpy as np
import pytest

from segment_index.boundary.vdb import vector_codec
from segment_index.core.exceptions import DimensionMismatchError, InvalidInputError


class TestValidate:
    """Test suite for vector_codec.validate()."""

    def test_validate_should_return_float32_array(self) -> None:
        """Test valid vectors come back as float32 arrays."""
        # Act
        result = vector_codec.validate([1, 2, 3], 3)

        # Assert
        assert result.dtype == np.float32
        assert result.tolist() == [1.0, 2.0, 3.0]

    @pytest.mark.parametrize("length", [2, 4])
    def test_validate_should_reject_wrong_dimension(self, length: int) -> None:
        """Test short and long vectors are rejected, never padded or truncated."""
        # Act / Assert
        with pytest.raises(DimensionMismatchError) as exc_info:
            vector_codec.validate([0.5] * length, 3)

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == length

    def test_validate_should_reject_nan_components(self) -> None:
        """Test NaN and infinity are rejected."""
        with pytest.raises(InvalidInputError):
            vector_codec.validate([1.0, math.nan, 0.0], 3)
        with pytest.raises(InvalidInputError):
            vector_codec.validate([1.0, math.inf, 0.0], 3)

    def test_validate_should_reject_non_numeric_and_nested_input(self) -> None:
        """Test strings and matrices are not vectors."""
        with pytest.raises(InvalidInputError):
            vector_codec.validate(["a", "b", "c"], 3)
        with pytest.raises(InvalidInputError):
            vector_codec.validate([[1.0, 2.0, 3.0]], 3)

    def test_dimension_mismatch_should_be_invalid_input(self) -> None:
        """Test callers catching InvalidInputError also catch dimension errors."""
        with pytest.raises(InvalidInputError):
            vector_codec.validate([1.0], 2)


class TestSimilarity:
    """Test suite for cosine similarity and distance."""

    def test_similarity_should_be_one_for_identical_direction(self) -> None:
        """Test parallel vectors score 1 regardless of magnitude."""
        assert vector_codec.similarity([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_similarity_should_be_zero_for_orthogonal_vectors(self) -> None:
        """Test orthogonal vectors score 0."""
        assert vector_codec.similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_similarity_should_clamp_opposite_vectors_to_zero(self) -> None:
        """Test negative cosine is clamped into [0, 1]."""
        assert vector_codec.similarity([1, 0], [-1, 0]) == 0.0

    def test_similarity_should_be_zero_for_zero_vectors(self) -> None:
        """Test zero-norm input never divides by zero."""
        assert vector_codec.similarity([0, 0], [1, 1]) == 0.0
        assert vector_codec.similarity([0, 0], [0, 0]) == 0.0

    def test_distance_should_complement_similarity(self) -> None:
        """Test distance is 1 - similarity."""
        a, b = [1.0, 1.0, 0.0], [1.0, 0.0, 0.0]

        assert vector_codec.distance(a, b) == pytest.approx(1.0 - vector_codec.similarity(a, b))

    def test_similarities_should_match_pairwise_similarity(self) -> None:
        """Test the batched form agrees with the scalar form, zero rows included."""
        # Arrange
        query = [1.0, 0.5, 0.0]
        matrix = np.array([[1.0, 0.5, 0.0], [0.0, 0.0, 1.0], [0.0, 0.0, 0.0], [-1.0, 0.0, 0.0]])

        # Act
        scores = vector_codec.similarities(query, matrix)

        # Assert
        expected = [vector_codec.similarity(query, row) for row in matrix]
        assert scores.tolist() == pytest.approx(expected, abs=1e-6)

    def test_similarities_should_handle_empty_matrix(self) -> None:
        """Test no rows gives no scores."""
        scores = vector_codec.similarities([1.0, 0.0], np.zeros((0, 2)))

        assert scores.shape == (0,)

    def test_normalize_should_produce_unit_vector(self) -> None:
        """Test normalize scales to length 1 and leaves zero vectors alone."""
        assert np.linalg.norm(vector_codec.normalize([3.0, 4.0])) == pytest.approx(1.0)
        assert vector_codec.normalize([0.0, 0.0]).tolist() == [0.0, 0.0]


class TestBlobFormat:
    """Test suite for encode()/decode()."""

    def test_encode_should_write_little_endian_float32(self) -> None:
        """Test the blob is 4 bytes per component, little-endian."""
        blob = vector_codec.encode([1.0, -2.0])

        assert len(blob) == 8
        assert blob == np.array([1.0, -2.0], dtype="<f4").tobytes()

    def test_decode_should_restore_stored_values(self) -> None:
        """Test float32 values survive storage exactly."""
        original = np.array([0.1, 0.2, 0.3], dtype=np.float32)

        assert np.array_equal(vector_codec.decode(vector_codec.encode(original)), original)

    def test_decode_should_reject_truncated_blob(self) -> None:
        """Test a blob that is not whole float32 values is invalid."""
        with pytest.raises(InvalidInputError):
            vector_codec.decode(b"\x00\x00\x80")
