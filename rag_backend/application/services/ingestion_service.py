"""
Ingestion coordinator.

Makes "object stored" and "row recorded" happen together or not at all:

1. write the bytes to storage (no row if this fails)
2. insert the document row as pending
3. if the insert fails, delete the object just written, then report

One row owns each object key (unique storage_path). Uploads of the same
key are serialized in-process; a cross-process loser that hits the
constraint leaves the winner's object in place.

A successfully recorded document is submitted to the processing queue.
A failed submission is logged only; the watchdog re-submits pending
documents whose job never arrived.

Dependencies: sqlalchemy, rag_backend.boundary, rag_backend.core
System role: Upload use case
"""

import asyncio
import contextlib
import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.application.services.storage_paths import (
    build_storage_path,
    validate_filename,
    validate_mime_type,
)
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus
from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.configs.storage import StorageSettings
from rag_backend.core.document_processing.configs import DocumentPipelineSettings
from rag_backend.core.document_processing.models import ProcessingJob
from rag_backend.core.document_processing.scheduler import PipelineScheduler
from rag_backend.core.exceptions import DatabaseError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def _duplicate_path(existing: DocumentModel) -> ValidationError:
    return ValidationError(
        "A document with this filename already exists in this scope",
        field="filename",
        details={"document_id": str(existing.id)},
    )


class IngestionCoordinator:
    """Atomic upload across object storage and the relational store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
        scheduler: PipelineScheduler,
        pipeline_settings: DocumentPipelineSettings,
        storage_settings: StorageSettings,
        documents: DocumentCRUD = document_crud,
    ) -> None:
        self._session_factory = session_factory
        self._storage = storage
        self._scheduler = scheduler
        self._pipeline_settings = pipeline_settings
        self._storage_settings = storage_settings
        self._documents = documents
        # Serializes check/put/insert per object key within this process;
        # the unique storage_path constraint covers other processes
        self._path_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._path_users: defaultdict[str, int] = defaultdict(int)

    def storage_path_for(self, scope_id: str | None, filename: str) -> str:
        return build_storage_path(scope_id, filename, self._storage_settings.global_partition)

    async def ingest(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        scope_id: str | None,
    ) -> DocumentModel:
        """
        Store a file and record it as a pending document.

        Args:
            data: File content
            filename: Original filename
            mime_type: Content type
            scope_id: Project scope, None for a global document

        Returns:
            DocumentModel: The pending document

        Raises:
            ValidationError: Bad filename/type, empty file, or the path is already in use
            StorageError: The object could not be written (no row created)
            DatabaseError: The row could not be written (object removed, rolled_back=True)
        """
        validate_filename(filename)
        validate_mime_type(mime_type, self._pipeline_settings.supported_mime_types)
        if not data:
            raise ValidationError("File is empty", field="file")

        path = self.storage_path_for(scope_id, filename)
        async with self._path_lock(path):
            await self._ensure_path_unused(path)

            try:
                await asyncio.to_thread(self._storage.put, path, data, mime_type)
            except StorageError as e:
                logger.error(
                    f"{__name__}:ingest - Storage write failed: {e.message}",
                    extra={"path": path, "scope_id": scope_id},
                )
                raise

            document = await self._record(path, filename, mime_type, scope_id, len(data))
        await self._schedule(document)
        return document

    async def presign_upload(
        self,
        filename: str,
        mime_type: str,
        scope_id: str | None,
    ) -> tuple[str, str, datetime]:
        """
        Prepare a direct browser upload.

        Returns:
            tuple[str, str, datetime]: (storage_path, presigned_url, expires_at)

        Raises:
            ValidationError: Bad filename/type or path already in use
            StorageError: URL generation failed
        """
        validate_filename(filename)
        validate_mime_type(mime_type, self._pipeline_settings.supported_mime_types)
        path = self.storage_path_for(scope_id, filename)
        await self._ensure_path_unused(path)
        url, expires_at = await asyncio.to_thread(
            self._storage.presigned_upload_url, path, mime_type
        )
        return path, url, expires_at

    async def register_uploaded(
        self,
        storage_path: str,
        filename: str,
        mime_type: str,
        scope_id: str | None,
        size_bytes: int | None = None,
    ) -> DocumentModel:
        """
        Record a document whose object the client already uploaded.

        Applies the same compensation as ingest(): the object is deleted if
        the row cannot be written.

        Raises:
            ValidationError: Path does not match the scope/filename, or is already in use
            StorageError: The object does not exist (not_found=True)
            DatabaseError: The row could not be written (object removed)
        """
        validate_filename(filename)
        validate_mime_type(mime_type, self._pipeline_settings.supported_mime_types)
        expected_path = self.storage_path_for(scope_id, filename)
        if storage_path != expected_path:
            raise ValidationError(
                "Storage path does not match scope and filename",
                field="storage_path",
                details={"expected": expected_path},
            )
        async with self._path_lock(storage_path):
            await self._ensure_path_unused(storage_path)

            exists = await asyncio.to_thread(self._storage.exists, storage_path)
            if not exists:
                raise StorageError(
                    f"Uploaded object not found: {storage_path}",
                    path=storage_path,
                    operation="head",
                    not_found=True,
                )

            document = await self._record(storage_path, filename, mime_type, scope_id, size_bytes)
        await self._schedule(document)
        return document

    @contextlib.asynccontextmanager
    async def _path_lock(self, path: str):
        lock = self._path_locks[path]
        self._path_users[path] += 1
        try:
            async with lock:
                yield
        finally:
            self._path_users[path] -= 1
            if self._path_users[path] == 0:
                del self._path_users[path]
                del self._path_locks[path]

    async def _find_owner(self, path: str) -> DocumentModel | None:
        async with self._session_factory() as session:
            return await self._documents.get_by_storage_path(session, path)

    async def _ensure_path_unused(self, path: str) -> None:
        existing = await self._find_owner(path)
        if existing is not None:
            raise _duplicate_path(existing)

    async def _record(
        self,
        path: str,
        filename: str,
        mime_type: str,
        scope_id: str | None,
        size_bytes: int | None,
    ) -> DocumentModel:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    document = await self._documents.create(
                        session,
                        filename=filename,
                        mime_type=mime_type,
                        storage_path=path,
                        scope_id=scope_id,
                        size_bytes=size_bytes,
                        status=DocumentStatus.PENDING,
                        error_history=[],
                    )
        except IntegrityError as e:
            owner = await self._find_owner(path)
            if owner is not None:
                # The object belongs to the row that won the path
                logger.warning(
                    f"{__name__}:_record - Path claimed by another upload",
                    extra={"path": path, "document_id": str(owner.id)},
                )
                raise _duplicate_path(owner) from e
            rolled_back = await self._compensate(path)
            raise DatabaseError(
                f"Failed to record document: {type(e).__name__}: {e}",
                rolled_back=rolled_back,
                details={"path": path},
            ) from e
        except (Exception, asyncio.CancelledError) as e:
            rolled_back = await self._compensate(path)
            if isinstance(e, asyncio.CancelledError):
                raise
            raise DatabaseError(
                f"Failed to record document: {type(e).__name__}: {e}",
                rolled_back=rolled_back,
                details={"path": path},
            ) from e

        logger.info(
            f"{__name__}:_record - Document recorded",
            extra={"document_id": str(document.id), "path": path, "scope_id": scope_id},
        )
        return document

    async def _compensate(self, path: str) -> bool:
        """Remove an object whose row could not be written."""
        try:
            await asyncio.shield(asyncio.to_thread(self._storage.delete, path))
        except StorageError as e:
            logger.error(
                f"{__name__}:_compensate - Orphaned object left in storage: {e.message}",
                extra={"path": path},
            )
            return False
        logger.warning(f"{__name__}:_compensate - Removed object after failed insert", extra={"path": path})
        return True

    async def _schedule(self, document: DocumentModel) -> None:
        job = ProcessingJob(document_id=document.id, attempt=1)
        try:
            await self._scheduler.submit(job)
        except Exception as e:
            logger.error(
                f"{__name__}:_schedule - Submission failed, watchdog will retry: {type(e).__name__}: {e}",
                extra={"document_id": str(document.id)},
            )
