"""
Application services.

Exports:
  - SegmentService: Deduplicated segment creation and reads
  - SearchService: Similarity query planning
  - EmbeddingService: All-or-nothing embedding batches
  - MaintenanceService: Statistics, invalid-vector cleanup, health
"""

from segment_index.application.services.segment_service import SegmentService
from segment_index.application.services.search_service import SearchService
from segment_index.application.services.embedding_service import EmbeddingService
from segment_index.application.services.maintenance_service import MaintenanceService

__all__ = [
    "SegmentService",
    "SearchService",
    "EmbeddingService",
    "MaintenanceService",
]
