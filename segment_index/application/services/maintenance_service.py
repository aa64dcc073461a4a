"""
Maintenance and health service.

Dependencies: segment_index.boundary.vdb
System role: Statistics, invalid-vector repair and health reporting
"""

import logging

from segment_index.boundary.vdb.index_manager import IndexManager
from segment_index.boundary.vdb.vector_schemas import HealthStatus, StoreStats
from segment_index.boundary.vdb.vector_store import VectorStore

logger = logging.getLogger(__name__)


class MaintenanceService:
    """Read-mostly operations for the maintenance collaborator."""

    def __init__(self, store: VectorStore, index_manager: IndexManager) -> None:
        """
        Initialize maintenance service.

        Args:
            store: Vector store to inspect and repair
            index_manager: Index manager to keep consistent with deletions
        """
        self.store = store
        self.index_manager = index_manager

    async def get_stats(self) -> StoreStats:
        """
        Segment table statistics.

        Returns:
            StoreStats: total_segments, segments_missing_embedding, average_text_length
        """
        return await self.store.stats()

    async def cleanup_invalid_vectors(self) -> int:
        """
        Delete segments whose stored embedding does not have the configured dimension.

        Segments still waiting for an embedding are kept.

        Returns:
            int: Number of segments removed
        """
        removed = await self.store.delete_invalid_embeddings()
        self.index_manager.remove(removed)
        if removed:
            logger.warning(
                f"{__name__}:cleanup_invalid_vectors - Removed {len(removed)} segments "
                f"with invalid embeddings"
            )
        return len(removed)

    async def health_check(self) -> HealthStatus:
        """
        Report store connectivity and index state; never raises.

        Returns:
            HealthStatus: connected flag, index state, vectors in the clustered index
        """
        status = self.index_manager.status()
        return HealthStatus(
            connected=await self.store.ping(),
            index_state=status.state,
            vectors_indexed=status.vector_count,
        )
