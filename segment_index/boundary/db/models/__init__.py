"""
Database models package.

Exports:
  - SegmentModel: Deduplicated text segment with optional embedding
  - DocumentModel: Parent document registry for collection scoping

Dependencies: sqlalchemy, segment_index.boundary.db.base
System role: Database model definitions for domain entities
"""

from segment_index.boundary.db.models.segment_model import SegmentModel
from segment_index.boundary.db.models.document_model import DocumentModel

__all__ = [
    "SegmentModel",
    "DocumentModel",
]
