"""
Segment ORM model.

One row per deduplicated text segment. The embedding is stored as a
flat float32 blob next to its component count so corrupted writes can
be detected without decoding.

Dependencies: sqlalchemy, segment_index.boundary.db.base
System role: Durable segment table
"""

import uuid
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from segment_index.boundary.db.base import Base, InsertionOrderMixin, TimestampMixin


class SegmentModel(Base, InsertionOrderMixin, TimestampMixin):
    """
    Segment ORM model.

    Lifecycle: created with text, hash and position by ingestion; the
    embedding is attached later by a batch update; rows are removed only
    by parent deletion or invalid-vector cleanup.

    Attributes:
        seq: Surrogate primary key; records insertion order for tie-breaks
        id: Public UUID of the segment (unique, immutable)
        parent_id: Owning document UUID; dedup namespace
        text: Literal segment content
        token_count: Token estimate (>= 0)
        page, slide, char_start, char_end, bbox: Descriptive position
        content_hash: SHA-256 of normalized text
        embedding: float32 blob, NULL until attached
        embedding_dim: Number of stored components, NULL with embedding
        created_at: Creation timestamp (UTC, immutable)
        updated_at: Last embedding change (UTC)

    Constraints:
        (parent_id, content_hash): UNIQUE; the dedup key
        token_count >= 0
    """

    __tablename__ = "segments"
    __table_args__ = (
        UniqueConstraint("parent_id", "content_hash", name="uq_segments_parent_hash"),
        CheckConstraint("token_count >= 0", name="ck_segments_token_count"),
        Index("ix_segments_parent_position", "parent_id", "page", "slide", "char_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        unique=True,
        default=uuid.uuid4,
        nullable=False,
    )

    parent_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    token_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    slide: Mapped[int | None] = mapped_column(Integer, nullable=True)
    char_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    char_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bbox: Mapped[Any] = mapped_column(JSON, nullable=True)

    content_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="SHA-256 hex digest of normalized text",
    )

    embedding: Mapped[bytes | None] = mapped_column(
        LargeBinary,
        nullable=True,
        deferred=True,
        doc="Flat little-endian float32 vector",
    )

    embedding_dim: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
