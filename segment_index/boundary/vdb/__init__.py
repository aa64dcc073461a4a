"""
Vector boundary layer.

Provides the vector codec, the VectorStore capability and its SQL
implementation, the ANN indexes and the index lifecycle manager.
- SQLVectorStore: Segment table with float32 blob embeddings
- ExactScanIndex / ClusteredIndex: Interchangeable candidate generators
- IndexManager: ABSENT -> BUILDING -> READY state machine

Dependencies: numpy, sqlalchemy, tenacity
System role: Vector storage and ANN retrieval adapter
"""

from segment_index.boundary.vdb.vector_schemas import (
    BatchEntryError,
    BatchResult,
    EmbeddingUpdate,
    HealthStatus,
    IndexState,
    IndexStatus,
    SearchFilters,
    Segment,
    SegmentDraft,
    SegmentPage,
    SegmentPosition,
    SimilarityResult,
    StoreStats,
)
from segment_index.boundary.vdb.vector_store import Candidate, EmbeddingRecord, VectorStore
from segment_index.boundary.vdb.sql_vector_store import SQLVectorStore
from segment_index.boundary.vdb.ann_index import AnnIndex, ClusteredIndex, ExactScanIndex
from segment_index.boundary.vdb.index_manager import IndexManager

__all__ = [
    "BatchEntryError",
    "BatchResult",
    "EmbeddingUpdate",
    "HealthStatus",
    "IndexState",
    "IndexStatus",
    "SearchFilters",
    "Segment",
    "SegmentDraft",
    "SegmentPage",
    "SegmentPosition",
    "SimilarityResult",
    "StoreStats",
    "Candidate",
    "EmbeddingRecord",
    "VectorStore",
    "SQLVectorStore",
    "AnnIndex",
    "ClusteredIndex",
    "ExactScanIndex",
    "IndexManager",
]
