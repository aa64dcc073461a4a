"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from segment_index.boundary.db.CRUD import segment_crud

    segment = await segment_crud.get_by_hash(db, parent_id, content_hash)
"""

from segment_index.boundary.db.CRUD.base_crud import BaseCRUD
from segment_index.boundary.db.CRUD.segment_crud import SegmentCRUD, segment_crud
from segment_index.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud

__all__ = [
    "BaseCRUD",
    "SegmentCRUD",
    "segment_crud",
    "DocumentCRUD",
    "document_crud",
]
