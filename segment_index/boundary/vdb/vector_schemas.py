"""
Vector database schemas.

Pydantic models for segment reads, search requests and results, embedding
batches and maintenance reports. Used for type-safe engine interactions.

Dependencies: pydantic
System role: Type definitions for segment and vector operations
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from segment_index.core.exceptions import BatchPartialFailureError


class SegmentPosition(BaseModel):
    """Descriptive location of a segment inside its document; never used for identity."""

    page: int | None = Field(default=None, description="Page number in source document")
    slide: int | None = Field(default=None, description="Slide number for presentations")
    char_start: int | None = Field(default=None, ge=0, description="Start character offset")
    char_end: int | None = Field(default=None, ge=0, description="End character offset")
    bbox: Any = Field(default=None, description="Bounding box as produced by the parser")


class SegmentDraft(BaseModel):
    """Input for one segment of a bulk insert."""

    text: str = Field(description="Segment text content")
    position: SegmentPosition = Field(default_factory=SegmentPosition)
    token_count: int | None = Field(
        default=None,
        description="Token count; estimated from text when omitted",
    )


class Segment(BaseModel):
    """
    Stored segment as returned to callers.

    The embedding payload is never included; has_embedding reports
    whether one is attached.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(description="Segment identifier")
    parent_id: uuid.UUID = Field(description="Owning document identifier")
    text: str = Field(description="Segment text content")
    token_count: int = Field(ge=0, description="Token estimate")
    position: SegmentPosition = Field(default_factory=SegmentPosition)
    content_hash: str = Field(description="Fingerprint of normalized text")
    has_embedding: bool = Field(default=False, description="True once an embedding is attached")
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_model(cls, row: Any) -> "Segment":
        """Build from a SegmentModel without touching its deferred embedding column."""
        return cls(
            id=row.id,
            parent_id=row.parent_id,
            text=row.text,
            token_count=row.token_count,
            position=SegmentPosition(
                page=row.page,
                slide=row.slide,
                char_start=row.char_start,
                char_end=row.char_end,
                bbox=row.bbox,
            ),
            content_hash=row.content_hash,
            has_embedding=row.embedding_dim is not None,
            created_at=row.created_at,
        )


class SegmentPage(BaseModel):
    """One page of a parent's segments."""

    segments: list[Segment] = Field(default_factory=list)
    total: int = Field(description="Unfiltered segment count for the parent")
    page: int = Field(default=1, description="1-based page number")
    limit: int | None = Field(default=None, description="Page size (None for all)")


class SearchFilters(BaseModel):
    """Scope restrictions applied to a similarity search."""

    model_config = ConfigDict(extra="forbid")

    parent_ids: list[uuid.UUID] | None = Field(
        default=None,
        description="Only segments of these documents (allow-list)",
    )
    exclude_segment_ids: list[uuid.UUID] | None = Field(
        default=None,
        description="Never return these segments (block-list)",
    )
    collection_id: str | None = Field(
        default=None,
        description="Only segments of documents registered under this collection",
    )


class SimilarityResult(BaseModel):
    """Single result from a similarity search."""

    segment: Segment = Field(description="Matched segment")
    score: float = Field(ge=0.0, le=1.0, description="Cosine similarity (0.0-1.0)")


class EmbeddingUpdate(BaseModel):
    """One (segment, vector) pair of an embedding batch."""

    segment_id: uuid.UUID = Field(description="Target segment")
    vector: list[float] = Field(description="Embedding vector")


class BatchEntryError(BaseModel):
    """Why one entry of a batch was rejected."""

    index: int = Field(description="Position of the entry in the submitted batch")
    segment_id: uuid.UUID | None = Field(default=None, description="Target segment if parseable")
    reason: str = Field(description="Human-readable rejection reason")


class BatchResult(BaseModel):
    """Outcome of an all-or-nothing embedding batch."""

    ok: bool = Field(description="True when every entry was applied")
    applied: int = Field(default=0, description="Number of embeddings written")
    failures: list[BatchEntryError] = Field(default_factory=list)

    def raise_for_failures(self) -> None:
        """
        Raise when the batch was rejected.

        Raises:
            BatchPartialFailureError: If any entry failed
        """
        if not self.ok:
            raise BatchPartialFailureError(self.failures)


class StoreStats(BaseModel):
    """Segment table statistics."""

    total_segments: int = Field(default=0)
    segments_missing_embedding: int = Field(default=0)
    average_text_length: int = Field(default=0, description="Mean text length in characters")


class IndexState(str, enum.Enum):
    """
    ANN index lifecycle states.

    ABSENT: No clustered index; queries use the exact scan
    BUILDING: A rebuild is running off a snapshot
    READY: Clustered index serving queries
    """

    ABSENT = "absent"
    BUILDING = "building"
    READY = "ready"


class IndexStatus(BaseModel):
    """Current ANN index state."""

    state: IndexState
    vector_count: int = Field(default=0, description="Vectors in the serving clustered index")
    n_clusters: int = Field(default=0)
    built_at: datetime | None = Field(default=None)
    last_error: str | None = Field(default=None, description="Reason the last rebuild failed")


class HealthStatus(BaseModel):
    """Connectivity and index health report."""

    connected: bool
    index_state: IndexState
    vectors_indexed: int = Field(default=0)
