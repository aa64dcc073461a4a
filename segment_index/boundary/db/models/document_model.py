"""
Document ORM model.

Thin registry of parent documents so searches can be scoped to a
collection (course, folder) without the segment rows carrying it.

Dependencies: sqlalchemy, segment_index.boundary.db.base
System role: Parent document to collection mapping
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from segment_index.boundary.db.base import Base, UUIDMixin, TimestampMixin


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Parent document registry row.

    The id is supplied by the caller and equals the parent_id used by
    that document's segments. Segments may exist without a registry row;
    they are then outside every collection scope.

    Attributes:
        id: Parent document UUID (caller-assigned)
        collection_id: Collection scope (course, folder); nullable
        title: Optional human-readable title
        created_at: Registration timestamp (UTC)
        updated_at: Last re-registration timestamp (UTC)
    """

    __tablename__ = "documents"

    collection_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Collection the document belongs to",
    )

    title: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )
