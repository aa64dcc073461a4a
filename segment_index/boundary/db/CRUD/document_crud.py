"""
Document CRUD operations.

Registers parent documents under a collection and resolves a collection
to the parent ids it scopes.

Dependencies: sqlalchemy, segment_index.boundary.db.models.document_model
System role: Parent document registry persistence
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from segment_index.boundary.db.models.document_model import DocumentModel
from segment_index.boundary.db.CRUD.base_crud import BaseCRUD


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def upsert(
        self,
        session: AsyncSession,
        id: UUID,
        collection_id: str | None,
        title: str | None = None,
    ) -> DocumentModel:
        """
        Register a document or update its collection and title.

        Args:
            session: Async database session
            id: Parent document UUID (same value segments use as parent_id)
            collection_id: Collection scope
            title: Optional title

        Returns:
            The stored DocumentModel
        """
        existing = await self.get_by_id(session, id)
        if existing is None:
            return await self.create(
                session, id=id, collection_id=collection_id, title=title
            )
        existing.collection_id = collection_id
        existing.title = title
        await session.flush()
        return existing

    async def get_ids_by_collection(
        self,
        session: AsyncSession,
        collection_id: str,
    ) -> list[UUID]:
        """
        Resolve a collection to its document ids.

        Args:
            session: Async database session
            collection_id: Collection scope

        Returns:
            list[UUID]: Parent ids registered under the collection
        """
        stmt = select(DocumentModel.id).where(DocumentModel.collection_id == collection_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())


document_crud = DocumentCRUD()
