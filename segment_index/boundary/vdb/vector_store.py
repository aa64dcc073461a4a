"""
Abstract vector store capability.

The engine is written against this interface (insert, fetch-by-filter,
nearest-neighbor probe) so the backing engine can be swapped: a relational
database with blob columns, a database with a native vector type, or a
dedicated vector database.

Dependencies: numpy
System role: Storage port consumed by services and ANN indexes
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable
from uuid import UUID

import numpy as np

from segment_index.boundary.vdb.vector_schemas import (
    Segment,
    SegmentDraft,
    StoreStats,
)


@dataclass(frozen=True)
class EmbeddingRecord:
    """An embedded segment as seen by ANN indexes."""

    segment_id: UUID
    parent_id: UUID
    created_at: datetime
    seq: int
    vector: np.ndarray


@dataclass(frozen=True)
class Candidate:
    """A segment proposed by an index probe, with its index-side score."""

    segment_id: UUID
    score: float
    created_at: datetime
    seq: int

    def rank_key(self) -> tuple[float, datetime, int]:
        """Sort key: score descending, then earliest created, then insertion order."""
        return (-self.score, self.created_at, self.seq)


@dataclass(frozen=True)
class NewSegment:
    """Validated, hashed segment ready for insertion."""

    draft: SegmentDraft
    content_hash: str
    token_count: int


class VectorStore(ABC):
    """Storage capability required by the retrieval engine."""

    @abstractmethod
    async def insert_segment(self, parent_id: UUID, segment: NewSegment) -> tuple[UUID, bool]:
        """
        Atomically insert unless (parent_id, content_hash) already exists.

        Returns:
            tuple: (segment id, True if a new row was created)
        """

    @abstractmethod
    async def insert_segments(
        self, parent_id: UUID, segments: list[NewSegment]
    ) -> list[tuple[UUID, bool]]:
        """Bulk form of insert_segment; results follow input order."""

    @abstractmethod
    async def fetch_by_ids(self, ids: Iterable[UUID]) -> list[Segment]:
        """Fetch existing segments in reading order."""

    @abstractmethod
    async def fetch_by_parent(
        self, parent_id: UUID, limit: int | None, offset: int
    ) -> tuple[list[Segment], int]:
        """Fetch one page of a parent's segments and the parent's total count."""

    @abstractmethod
    async def delete_by_parent(self, parent_id: UUID) -> list[UUID]:
        """Delete a parent's segments and registry row; returns removed segment ids."""

    @abstractmethod
    async def register_document(
        self, parent_id: UUID, collection_id: str | None, title: str | None
    ) -> None:
        """Record which collection a parent document belongs to."""

    @abstractmethod
    async def resolve_collection(self, collection_id: str) -> list[UUID]:
        """Parent ids registered under a collection."""

    @abstractmethod
    async def write_embeddings(
        self, embeddings: dict[UUID, np.ndarray]
    ) -> tuple[list[UUID], list[EmbeddingRecord]]:
        """
        Write every embedding in one transaction, or none of them.

        Returns:
            tuple: (ids that do not exist, records written). When the
            first element is non-empty nothing was written.
        """

    @abstractmethod
    async def fetch_embeddings(
        self,
        ids: Iterable[UUID] | None = None,
        parent_ids: Iterable[UUID] | None = None,
        exclude_ids: Iterable[UUID] | None = None,
    ) -> list[EmbeddingRecord]:
        """Fetch embedded segments matching the filters."""

    @abstractmethod
    async def nearest(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: Iterable[UUID] | None = None,
        exclude_ids: Iterable[UUID] | None = None,
    ) -> list[Candidate]:
        """Exact top-k by cosine similarity among the filtered embeddings."""

    @abstractmethod
    async def stats(self) -> StoreStats:
        """Segment table statistics."""

    @abstractmethod
    async def delete_invalid_embeddings(self) -> list[UUID]:
        """Delete segments whose stored embedding is structurally invalid."""

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backing store answers."""
