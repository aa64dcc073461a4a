"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, InsertionOrderMixin, TimestampMixin: Model building blocks
  - create_engine_from_settings(), create_session_factory(): Store handle construction
  - create_tables(), drop_tables(): Schema lifecycle
  - SegmentModel, DocumentModel: Domain entities
  - segment_crud, document_crud: CRUD operation singletons

Dependencies: sqlalchemy, segment_index.configs
System role: Relational persistence for segments and their parent documents
"""

from segment_index.boundary.db.base import Base, InsertionOrderMixin, TimestampMixin, UUIDMixin
from segment_index.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
    drop_tables,
)
from segment_index.boundary.db.models.segment_model import SegmentModel
from segment_index.boundary.db.models.document_model import DocumentModel
from segment_index.boundary.db.CRUD import (
    BaseCRUD,
    SegmentCRUD,
    DocumentCRUD,
    segment_crud,
    document_crud,
)

__all__ = [
    # Base classes
    "Base",
    "InsertionOrderMixin",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "create_engine_from_settings",
    "create_session_factory",
    "create_tables",
    "drop_tables",
    # Models
    "SegmentModel",
    "DocumentModel",
    # CRUD classes
    "BaseCRUD",
    "SegmentCRUD",
    "DocumentCRUD",
    # CRUD singletons
    "segment_crud",
    "document_crud",
]
