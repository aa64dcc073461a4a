"""
Segment CRUD operations.

Segment-specific queries: dedup lookup, reading-order fetches, embedding
writes, filtered embedding scans and table statistics.

Dependencies: sqlalchemy, segment_index.boundary.db.models.segment_model
System role: Segment persistence operations
"""

from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from segment_index.boundary.db.models.segment_model import SegmentModel
from segment_index.boundary.db.CRUD.base_crud import BaseCRUD


def reading_order() -> list[Any]:
    """ORDER BY clauses for page, slide, char_start (NULLs last), then insertion order."""
    return [
        SegmentModel.page.asc().nulls_last(),
        SegmentModel.slide.asc().nulls_last(),
        SegmentModel.char_start.asc().nulls_last(),
        SegmentModel.seq.asc(),
    ]


class SegmentCRUD(BaseCRUD[SegmentModel]):
    """
    CRUD operations for SegmentModel.

    Extends BaseCRUD with dedup lookups, ordered reads and embedding
    maintenance queries.
    """

    def __init__(self) -> None:
        """Initialize SegmentCRUD with SegmentModel."""
        super().__init__(SegmentModel)

    async def get_by_hash(
        self,
        session: AsyncSession,
        parent_id: UUID,
        content_hash: str,
    ) -> SegmentModel | None:
        """
        Look up the segment holding a content hash within a parent.

        Args:
            session: Async database session
            parent_id: Dedup namespace
            content_hash: Fingerprint of normalized text

        Returns:
            SegmentModel if present, None otherwise
        """
        stmt = select(SegmentModel).where(
            SegmentModel.parent_id == parent_id,
            SegmentModel.content_hash == content_hash,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_ids_by_hashes(
        self,
        session: AsyncSession,
        parent_id: UUID,
        content_hashes: Iterable[str],
    ) -> dict[str, UUID]:
        """
        Map already-stored content hashes of a parent to their segment ids.

        Args:
            session: Async database session
            parent_id: Dedup namespace
            content_hashes: Fingerprints to look up

        Returns:
            dict[str, UUID]: content hash -> segment id, for hashes present
        """
        content_hashes = list(content_hashes)
        if not content_hashes:
            return {}
        stmt = select(SegmentModel.content_hash, SegmentModel.id).where(
            SegmentModel.parent_id == parent_id,
            SegmentModel.content_hash.in_(content_hashes),
        )
        result = await session.execute(stmt)
        return {row.content_hash: row.id for row in result}

    async def get_by_ids(
        self,
        session: AsyncSession,
        ids: Iterable[UUID],
    ) -> Sequence[SegmentModel]:
        """
        Retrieve segments by id in reading order; unknown ids are skipped.

        Args:
            session: Async database session
            ids: Segment UUIDs

        Returns:
            Sequence of SegmentModels ordered by position then insertion
        """
        ids = list(ids)
        if not ids:
            return []
        stmt = select(SegmentModel).where(SegmentModel.id.in_(ids)).order_by(*reading_order())
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_by_parent_id(
        self,
        session: AsyncSession,
        parent_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[SegmentModel]:
        """
        Retrieve one page of a parent's segments in reading order.

        Args:
            session: Async database session
            parent_id: Owning document UUID
            limit: Maximum number of segments to return (None for all)
            offset: Number of segments to skip

        Returns:
            Sequence of SegmentModels
        """
        stmt = (
            select(SegmentModel)
            .where(SegmentModel.parent_id == parent_id)
            .order_by(*reading_order())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_parent_id(self, session: AsyncSession, parent_id: UUID) -> int:
        """Count every segment of a parent."""
        stmt = select(func.count()).select_from(SegmentModel).where(
            SegmentModel.parent_id == parent_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_by_parent_id(self, session: AsyncSession, parent_id: UUID) -> list[UUID]:
        """
        Delete every segment of a parent.

        Args:
            session: Async database session
            parent_id: Owning document UUID

        Returns:
            list[UUID]: Ids of the deleted segments
        """
        ids_result = await session.execute(
            select(SegmentModel.id).where(SegmentModel.parent_id == parent_id)
        )
        ids = list(ids_result.scalars().all())
        if ids:
            await session.execute(delete(SegmentModel).where(SegmentModel.parent_id == parent_id))
        return ids

    async def delete_by_ids(self, session: AsyncSession, ids: Iterable[UUID]) -> int:
        """Delete segments by id; returns the number of rows removed."""
        ids = list(ids)
        if not ids:
            return 0
        result = await session.execute(delete(SegmentModel).where(SegmentModel.id.in_(ids)))
        return result.rowcount

    async def set_embeddings(
        self,
        session: AsyncSession,
        embeddings: dict[UUID, tuple[bytes, int]],
    ) -> Sequence[SegmentModel]:
        """
        Attach or replace embeddings on existing segments.

        Target rows are locked (FOR UPDATE where the dialect supports it)
        so a concurrent parent deletion cannot interleave with the write.

        Args:
            session: Async database session
            embeddings: segment id -> (float32 blob, component count)

        Returns:
            Sequence of updated SegmentModels; ids absent from the table are
            simply not in the result
        """
        if not embeddings:
            return []
        stmt = (
            select(SegmentModel)
            .where(SegmentModel.id.in_(list(embeddings)))
            .with_for_update()
        )
        result = await session.execute(stmt)
        segments = result.scalars().all()
        for segment in segments:
            blob, dim = embeddings[segment.id]
            segment.embedding = blob
            segment.embedding_dim = dim
        await session.flush()
        return segments

    async def get_embedding_rows(
        self,
        session: AsyncSession,
        ids: Iterable[UUID] | None = None,
        parent_ids: Iterable[UUID] | None = None,
        exclude_ids: Iterable[UUID] | None = None,
    ) -> Sequence[Row]:
        """
        Select embedded segments with filters pushed into SQL.

        Args:
            session: Async database session
            ids: Restrict to these segment ids
            parent_ids: Restrict to these parents (allow-list)
            exclude_ids: Skip these segment ids (block-list)

        Returns:
            Rows of (id, parent_id, created_at, seq, embedding)
        """
        stmt = select(
            SegmentModel.id,
            SegmentModel.parent_id,
            SegmentModel.created_at,
            SegmentModel.seq,
            SegmentModel.embedding,
        ).where(SegmentModel.embedding.is_not(None))
        if ids is not None:
            stmt = stmt.where(SegmentModel.id.in_(list(ids)))
        if parent_ids is not None:
            stmt = stmt.where(SegmentModel.parent_id.in_(list(parent_ids)))
        if exclude_ids:
            stmt = stmt.where(SegmentModel.id.not_in(list(exclude_ids)))
        result = await session.execute(stmt.order_by(SegmentModel.seq))
        return result.all()

    async def get_stats(self, session: AsyncSession) -> tuple[int, int, float]:
        """
        Aggregate table statistics.

        Returns:
            tuple: (total segments, segments without embedding, mean text length)
        """
        stmt = select(
            func.count(),
            func.count(SegmentModel.embedding),
            func.avg(func.length(SegmentModel.text)),
        ).select_from(SegmentModel)
        total, embedded, avg_length = (await session.execute(stmt)).one()
        return int(total), int(total) - int(embedded), float(avg_length or 0.0)

    async def get_invalid_embedding_ids(
        self,
        session: AsyncSession,
        expected_dim: int,
    ) -> list[UUID]:
        """
        Find segments whose stored embedding is structurally invalid.

        NULL embeddings are pending, not invalid.

        Args:
            session: Async database session
            expected_dim: Configured embedding dimension

        Returns:
            list[UUID]: Ids with wrong recorded dimension or blob length
        """
        stmt = select(SegmentModel.id).where(
            SegmentModel.embedding.is_not(None),
            or_(
                SegmentModel.embedding_dim.is_(None),
                SegmentModel.embedding_dim != expected_dim,
                func.length(SegmentModel.embedding) != expected_dim * 4,
            ),
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


segment_crud = SegmentCRUD()
