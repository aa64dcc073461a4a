"""
Vector codec.

Fixed-dimension float vector validation, cosine math and flat float32
(de)serialization. Vectors are plain value types: numpy arrays or any
sequence of floats, compared and stored by value.

Dependencies: numpy
System role: Distance computation and blob encoding for embeddings
"""

from typing import Sequence

import numpy as np

from segment_index.core.exceptions import DimensionMismatchError, InvalidInputError

DTYPE = np.dtype("<f4")

VectorLike = Sequence[float] | np.ndarray


def as_array(vector: VectorLike) -> np.ndarray:
    """Convert to a 1-D float32 array (no dimension check)."""
    try:
        arr = np.asarray(vector, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InvalidInputError("Vector must contain only numbers", field="vector") from e
    if arr.ndim != 1:
        raise InvalidInputError(
            "Vector must be one-dimensional",
            field="vector",
            details={"shape": list(arr.shape)},
        )
    return arr


def validate(vector: VectorLike, expected_dim: int) -> np.ndarray:
    """
    Check a vector against the configured dimension.

    Partial vectors are rejected, never padded or truncated.

    Args:
        vector: Candidate vector
        expected_dim: Configured embedding dimension D

    Returns:
        np.ndarray: float32 copy of the vector

    Raises:
        DimensionMismatchError: If len(vector) != expected_dim
        InvalidInputError: If the vector is not 1-D or has NaN/inf components
    """
    arr = as_array(vector)
    if arr.shape[0] != expected_dim:
        raise DimensionMismatchError(expected=expected_dim, actual=int(arr.shape[0]))
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("Vector contains NaN or infinite components", field="vector")
    return arr


def normalize(vector: VectorLike) -> np.ndarray:
    """Unit-length copy; a zero vector stays zero."""
    arr = as_array(vector)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return np.zeros_like(arr)
    return arr / norm


def similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Cosine similarity clamped to [0, 1].

    Zero-norm input (on either side, including a zero vector against
    itself) has similarity 0.
    """
    va, vb = as_array(a), as_array(b)
    denom = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(min(1.0, max(0.0, float(np.dot(va, vb)) / denom)))


def distance(a: VectorLike, b: VectorLike) -> float:
    """Cosine distance, 1 - similarity."""
    return 1.0 - similarity(a, b)


def similarities(query: VectorLike, matrix: np.ndarray) -> np.ndarray:
    """
    Clamped cosine similarity of one query against every row of a matrix.

    Args:
        query: Query vector of length D
        matrix: (N, D) array

    Returns:
        np.ndarray: (N,) float32 scores in [0, 1]; 0 for zero-norm rows
    """
    q = as_array(query)
    matrix = np.asarray(matrix, dtype=np.float32)
    if matrix.shape[0] == 0:
        return np.zeros((0,), dtype=np.float32)
    q_norm = float(np.linalg.norm(q))
    if q_norm == 0.0:
        return np.zeros((matrix.shape[0],), dtype=np.float32)
    row_norms = np.linalg.norm(matrix, axis=1)
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(row_norms > 0, dots / (row_norms * q_norm), 0.0)
    return np.clip(scores, 0.0, 1.0).astype(np.float32)


def encode(vector: VectorLike) -> bytes:
    """Serialize to a flat little-endian float32 blob."""
    return as_array(vector).astype(DTYPE, copy=False).tobytes()


def decode(blob: bytes) -> np.ndarray:
    """
    Deserialize a flat float32 blob.

    Raises:
        InvalidInputError: If the blob length is not a multiple of 4 bytes
    """
    if len(blob) % DTYPE.itemsize:
        raise InvalidInputError(
            "Embedding blob is not a whole number of float32 values",
            field="embedding",
            details={"bytes": len(blob)},
        )
    return np.frombuffer(blob, dtype=DTYPE).astype(np.float32)
