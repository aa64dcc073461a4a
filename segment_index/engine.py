"""
Segment engine facade.

Wires the vector store, index manager and application services around
one explicitly owned store handle (session factory). There is no module
level engine; callers construct one and close it when done.

Dependencies: sqlalchemy, segment_index.application, segment_index.boundary
System role: Public entry point of the library
"""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Sequence
from uuid import UUID

import numpy as np
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from segment_index.application.services import (
    EmbeddingService,
    MaintenanceService,
    SearchService,
    SegmentService,
)
from segment_index.application.services.embedding_service import UpdateLike
from segment_index.application.services.search_service import FiltersLike
from segment_index.application.services.segment_service import PositionLike
from segment_index.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
)
from segment_index.boundary.vdb.index_manager import IndexManager
from segment_index.boundary.vdb.sql_vector_store import SQLVectorStore
from segment_index.boundary.vdb.vector_schemas import (
    BatchResult,
    HealthStatus,
    IndexStatus,
    Segment,
    SegmentDraft,
    SegmentPage,
    SimilarityResult,
    StoreStats,
)
from segment_index.configs.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class SegmentEngine:
    """
    Segment store and semantic retrieval engine.

    Usage:
        engine = SegmentEngine.from_settings(settings)
        await engine.create_schema()
        ids = await engine.create_segments(doc_id, [{"text": "..."}])
        await engine.apply_batch(zip(ids, vectors))
        results = await engine.search(query_vector, limit=5)
        await engine.close()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: Settings | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        """
        Initialize engine around an existing session factory.

        Args:
            session_factory: Async session factory owned by this engine
            settings: Engine settings (get_settings() when None)
            engine: AsyncEngine to dispose on close(), if this engine owns it
        """
        self.settings = settings or get_settings()
        self._db_engine = engine
        self._session_factory = session_factory

        index_settings = self.settings.vector_index
        self.store = SQLVectorStore(session_factory, index_settings.embedding_dimension)
        self.index_manager = IndexManager(self.store, index_settings)

        self.segments = SegmentService(self.store, self.index_manager)
        self.searcher = SearchService(self.store, self.index_manager, index_settings)
        self.embeddings = EmbeddingService(self.store, self.index_manager, index_settings)
        self.maintenance = MaintenanceService(self.store, self.index_manager)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SegmentEngine":
        """
        Build an engine that owns its database engine and session factory.

        Args:
            settings: Engine settings (get_settings() when None)

        Returns:
            SegmentEngine: Engine whose close() disposes the connection pool
        """
        settings = settings or get_settings()
        db_engine = create_engine_from_settings(settings.database)
        logger.info(
            f"{__name__}:from_settings - dimension={settings.vector_index.embedding_dimension} "
            f"sqlite={settings.database.is_sqlite}"
        )
        return cls(create_session_factory(db_engine), settings=settings, engine=db_engine)

    async def create_schema(self) -> None:
        """Create the segments and documents tables if missing."""
        if self._db_engine is None:
            bind = self._session_factory.kw.get("bind")
        else:
            bind = self._db_engine
        await create_tables(bind)

    async def close(self) -> None:
        """Stop any running index build and release the owned connection pool."""
        await self.index_manager.close()
        if self._db_engine is not None:
            await self._db_engine.dispose()
            logger.info(f"{__name__}:close - Database engine disposed")

    async def create_segment(
        self,
        parent_id: UUID | str,
        text: str,
        position: PositionLike = None,
        token_count: int | None = None,
    ) -> UUID:
        return await self.segments.create_segment(parent_id, text, position, token_count)

    async def create_segments(
        self,
        parent_id: UUID | str,
        items: Iterable[SegmentDraft | Mapping[str, Any]],
    ) -> list[UUID]:
        return await self.segments.create_segments(parent_id, items)

    async def register_document(
        self,
        parent_id: UUID | str,
        collection_id: str | None,
        title: str | None = None,
    ) -> None:
        await self.segments.register_document(parent_id, collection_id, title)

    async def get_by_ids(self, ids: Iterable[UUID | str]) -> list[Segment]:
        return await self.segments.get_by_ids(ids)

    async def get_segment(self, segment_id: UUID | str) -> Segment | None:
        return await self.segments.get_segment(segment_id)

    async def list_by_parent(
        self,
        parent_id: UUID | str,
        page: int = 1,
        limit: int | None = None,
    ) -> SegmentPage:
        return await self.segments.list_by_parent(parent_id, page, limit)

    async def delete_by_parent(self, parent_id: UUID | str) -> int:
        return await self.segments.delete_by_parent(parent_id)

    async def apply_batch(self, updates: Iterable[UpdateLike]) -> BatchResult:
        return await self.embeddings.apply_batch(updates)

    async def search(
        self,
        query_vector: Sequence[float] | np.ndarray,
        filters: FiltersLike = None,
        limit: int | None = None,
        min_similarity: float | None = None,
    ) -> list[SimilarityResult]:
        return await self.searcher.search(query_vector, filters, limit, min_similarity)

    async def rebuild_index(self) -> IndexStatus:
        """Rebuild the clustered index and wait for it."""
        return await self.index_manager.rebuild()

    def start_index_rebuild(self) -> asyncio.Task:
        """Rebuild the clustered index in the background."""
        return self.index_manager.start_rebuild()

    def abort_index_rebuild(self) -> bool:
        return self.index_manager.abort_rebuild()

    def index_status(self) -> IndexStatus:
        return self.index_manager.status()

    async def get_stats(self) -> StoreStats:
        return await self.maintenance.get_stats()

    async def cleanup_invalid_vectors(self) -> int:
        return await self.maintenance.cleanup_invalid_vectors()

    async def health_check(self) -> HealthStatus:
        return await self.maintenance.health_check()
