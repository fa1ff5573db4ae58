"""
Document service.

Read and delete operations over stored documents: listing, details, error
history, download links, single and bulk deletion.

Deletion removes the row first (chunks go with it through the foreign key
cascade) and the storage object second. A storage failure after the row is
gone is logged, not raised: the document no longer exists for any reader.

Dependencies: sqlalchemy, rag_backend.boundary, rag_backend.core
System role: Document management orchestration
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentModel
from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.core.document_processing.error_history import ErrorHistoryLog
from rag_backend.core.document_processing.models import ErrorRecord
from rag_backend.core.exceptions import DocumentNotFoundError, RagBackendException, StorageError, ValidationError
from rag_backend.core.retrieval.retrieval_cache import RetrievalCache

logger = logging.getLogger(__name__)


@dataclass
class DeleteOutcome:
    document_id: UUID
    deleted: bool
    error: str | None = None


class DocumentService:
    """
    Document service orchestrator.

    Handles listing, inspection and deletion. Upload lives in
    IngestionCoordinator and reprocessing in ReprocessOrchestrator.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
        retrieval_cache: RetrievalCache | None = None,
        error_log: ErrorHistoryLog | None = None,
        documents: DocumentCRUD = document_crud,
    ) -> None:
        self._session_factory = session_factory
        self._storage = storage
        self._retrieval_cache = retrieval_cache
        self._documents = documents
        self._error_log = error_log or ErrorHistoryLog(documents)

    async def list_documents(
        self,
        scope_id: str | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        async with self._session_factory() as session:
            return await self._documents.get_by_scope(session, scope_id, limit=limit, offset=offset)

    async def get_document(self, document_id: UUID) -> DocumentModel:
        """
        Raises:
            DocumentNotFoundError: No such document
        """
        async with self._session_factory() as session:
            document = await self._documents.get_by_id(session, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def get_error_history(self, document_id: UUID) -> list[ErrorRecord]:
        """Full chronological failure history (legacy rows read as one record)."""
        async with self._session_factory() as session:
            return await self._error_log.read(session, document_id)

    async def get_download_url(self, document_id: UUID) -> tuple[str, datetime]:
        """
        Short-lived download link for the stored file.

        Returns:
            tuple[str, datetime]: (url, expires_at)

        Raises:
            DocumentNotFoundError: No such document
            ValidationError: Document has no stored file
        """
        document = await self.get_document(document_id)
        if not document.storage_path:
            raise ValidationError("Document has no stored file", field="storage_path")
        return await asyncio.to_thread(self._storage.presigned_download_url, document.storage_path)

    async def delete_document(self, document_id: UUID) -> None:
        """
        Delete a document, its chunks and its stored file.

        Raises:
            DocumentNotFoundError: No such document
        """
        async with self._session_factory() as session:
            async with session.begin():
                document = await self._documents.get_by_id(session, document_id)
                if document is None:
                    raise DocumentNotFoundError(document_id)
                storage_path = document.storage_path
                await self._documents.delete_by_id(session, document_id)

        logger.info(
            f"{__name__}:delete_document - Document deleted",
            extra={"document_id": str(document_id)},
        )

        if storage_path:
            try:
                await asyncio.to_thread(self._storage.delete, storage_path)
            except StorageError as e:
                logger.warning(
                    f"{__name__}:delete_document - Stored file not removed: {e.message}",
                    extra={"document_id": str(document_id), "path": storage_path},
                )

        if self._retrieval_cache is not None:
            self._retrieval_cache.clear_cache()

    async def bulk_delete(self, document_ids: Sequence[UUID]) -> list[DeleteOutcome]:
        """
        Delete several documents independently.

        Returns:
            list[DeleteOutcome]: One outcome per id, in request order
        """
        outcomes = []
        for document_id in document_ids:
            try:
                await self.delete_document(document_id)
            except RagBackendException as e:
                outcomes.append(DeleteOutcome(document_id=document_id, deleted=False, error=e.message))
                continue
            outcomes.append(DeleteOutcome(document_id=document_id, deleted=True))
        return outcomes
