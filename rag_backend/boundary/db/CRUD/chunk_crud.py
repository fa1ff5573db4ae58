"""
Chunk CRUD operations.

Batch insert, per-document deletion and the embedded-chunk scan used by
the in-process similarity backend.

Dependencies: sqlalchemy, rag_backend.boundary.db.models
System role: Chunk persistence operations
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rag_backend.boundary.db.CRUD.base_crud import BaseCRUD
from rag_backend.boundary.db.models.chunk_model import ChunkModel
from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        super().__init__(ChunkModel)

    async def bulk_create(
        self,
        session: AsyncSession,
        document_id: UUID,
        rows: Sequence[dict[str, Any]],
    ) -> int:
        """
        Insert all chunks of a document in one statement.

        Args:
            session: Async database session (caller commits)
            document_id: Owning document
            rows: Column values per chunk (without document_id)

        Returns:
            int: Number of rows inserted
        """
        if not rows:
            return 0
        await session.execute(
            insert(ChunkModel),
            [{**row, "document_id": document_id} for row in rows],
        )
        return len(rows)

    async def delete_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        """Delete every chunk of a document. Idempotent."""
        stmt = (
            delete(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def count_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        stmt = select(func.count()).select_from(ChunkModel).where(
            ChunkModel.document_id == document_id
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    async def get_by_document(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_searchable(
        self,
        session: AsyncSession,
        scope_id: str | None,
    ) -> Sequence[tuple[ChunkModel, str]]:
        """
        Chunks of embedded documents visible from a scope.

        Global documents (scope_id NULL) are visible from every scope.

        Returns:
            Sequence of (chunk, filename) pairs
        """
        scope_filter = DocumentModel.scope_id.is_(None)
        if scope_id is not None:
            scope_filter = or_(scope_filter, DocumentModel.scope_id == scope_id)
        stmt = (
            select(ChunkModel, DocumentModel.filename)
            .join(DocumentModel, ChunkModel.document_id == DocumentModel.id)
            .where(DocumentModel.status == DocumentStatus.EMBEDDED, scope_filter)
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]


chunk_crud = ChunkCRUD()
