"""
Document CRUD operations.

Provides Create, Read, Update, Delete operations for DocumentModel plus
the compare-and-swap status update that serializes pipeline runs.

Dependencies: sqlalchemy, rag_backend.boundary.db.models
System role: Document persistence operations
"""

from datetime import datetime
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rag_backend.boundary.db.CRUD.base_crud import BaseCRUD
from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus
from rag_backend.core.exceptions import ConcurrencyConflict, DocumentNotFoundError


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Extends BaseCRUD with scope and status queries, status-guarded field
    updates and the compare-and-swap status transition.
    """

    def __init__(self) -> None:
        super().__init__(DocumentModel)

    async def get_by_scope(
        self,
        session: AsyncSession,
        scope_id: str | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve documents of one scope, newest first.

        Args:
            session: Async database session
            scope_id: Project scope, None selects global documents
            limit: Maximum number of documents to return
            offset: Number of documents to skip

        Returns:
            Sequence of DocumentModels belonging to the scope
        """
        if scope_id is None:
            condition = DocumentModel.scope_id.is_(None)
        else:
            condition = DocumentModel.scope_id == scope_id
        stmt = (
            select(DocumentModel)
            .where(condition)
            .order_by(DocumentModel.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_by_status(
        self,
        session: AsyncSession,
        status: DocumentStatus,
        limit: int | None = None,
    ) -> Sequence[DocumentModel]:
        stmt = select(DocumentModel).where(DocumentModel.status == status)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_by_storage_path(
        self,
        session: AsyncSession,
        storage_path: str,
    ) -> DocumentModel | None:
        """Return the row referencing a storage object, if any."""
        stmt = select(DocumentModel).where(DocumentModel.storage_path == storage_path).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_status(self, session: AsyncSession, id: UUID) -> DocumentStatus | None:
        stmt = select(DocumentModel.status).where(DocumentModel.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_stale_processing(
        self,
        session: AsyncSession,
        started_before: datetime,
    ) -> Sequence[DocumentModel]:
        """
        Documents whose active run started before the cutoff.

        Args:
            session: Async database session
            started_before: Runs started earlier than this are stale

        Returns:
            Sequence of DocumentModels still in PROCESSING
        """
        stmt = select(DocumentModel).where(
            DocumentModel.status == DocumentStatus.PROCESSING,
            DocumentModel.processing_started_at < started_before,
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_stale_pending(
        self,
        session: AsyncSession,
        created_before: datetime,
    ) -> Sequence[DocumentModel]:
        """Documents created before the cutoff that never left PENDING."""
        stmt = select(DocumentModel).where(
            DocumentModel.status == DocumentStatus.PENDING,
            DocumentModel.created_at < created_before,
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def update_if_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: DocumentStatus,
        **values: Any,
    ) -> bool:
        """
        Update fields only while the document is still in the given status.

        Args:
            session: Async database session
            id: Document UUID
            status: Required current status
            **values: Fields to update

        Returns:
            True when the row was updated
        """
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.id == id, DocumentModel.status == status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def compare_and_set_status(
        self,
        session: AsyncSession,
        id: UUID,
        expected: Iterable[DocumentStatus],
        new_status: DocumentStatus,
        **values: Any,
    ) -> DocumentStatus:
        """
        Move a document to new_status only if its current status is expected.

        The UPDATE is conditioned on the status read in the same transaction,
        so a concurrent writer that changed it in between makes the UPDATE
        match zero rows.

        Args:
            session: Async database session (caller commits)
            id: Document UUID
            expected: Acceptable current statuses
            new_status: Target status
            **values: Extra fields written in the same UPDATE

        Returns:
            DocumentStatus: The status that was replaced

        Raises:
            DocumentNotFoundError: No such document
            ConcurrencyConflict: Current status not expected, or changed concurrently
        """
        expected = frozenset(expected)
        current = await self.get_status(session, id)
        if current is None:
            raise DocumentNotFoundError(id)
        if current not in expected:
            raise ConcurrencyConflict(id, sorted(s.value for s in expected), current.value)

        stmt = (
            update(DocumentModel)
            .where(DocumentModel.id == id, DocumentModel.status == current)
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            actual = await self.get_status(session, id)
            raise ConcurrencyConflict(
                id,
                sorted(s.value for s in expected),
                actual.value if actual else "deleted",
            )
        return current


document_crud = DocumentCRUD()
