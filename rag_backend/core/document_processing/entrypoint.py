"""
Document processing pipeline orchestrator.

Runs download -> extraction -> chunking -> embedding -> persistence for one
document. Each stage consumes the complete output of the previous one and
nothing reaches the chunk table until every embedding exists.

Outcome is always one committed transaction:
    success: chunks inserted + processing -> embedded (chunk_count set)
    failure: error record appended + processing -> error (no chunks)

Dependencies: All task modules, rag_backend.boundary.db, configs
System role: Pipeline orchestration (coordinates only)
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from uuid import UUID

from langchain_core.embeddings import Embeddings
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.core.document_processing.configs import (
    DocumentPipelineSettings,
    get_pipeline_settings,
)
from rag_backend.core.document_processing.error_history import ErrorHistoryLog
from rag_backend.core.document_processing.models import (
    Chunk,
    ErrorRecord,
    ErrorStage,
    PipelineResult,
)
from rag_backend.core.document_processing.status_tracker import StatusTracker
from rag_backend.core.document_processing.tasks import (
    ChunkingTask,
    DownloadTask,
    EmbeddingTask,
    TextExtractor,
    validate_extracted_text,
)
from rag_backend.core.exceptions import (
    ConcurrencyConflict,
    DatabaseError,
    DocumentNotFoundError,
    DocumentProcessingError,
    ExtractionError,
    RagBackendException,
    StorageError,
)
from rag_backend.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

# processing_stage values shown to users while a run is active
STAGE_DOWNLOADING = "downloading file"
STAGE_EXTRACTING = "extracting text"
STAGE_CHUNKING = "chunking text"
STAGE_EMBEDDING = "embedding chunks"
STAGE_INSERTING = "inserting chunks"

STAGE_LABEL_TO_ERROR_STAGE = {
    STAGE_DOWNLOADING: ErrorStage.STORAGE,
    STAGE_EXTRACTING: ErrorStage.EXTRACTION,
    STAGE_CHUNKING: ErrorStage.EXTRACTION,
    STAGE_EMBEDDING: ErrorStage.EMBEDDING,
    STAGE_INSERTING: ErrorStage.DATABASE,
}


@dataclass
class _RunState:
    """Mutable progress marker shared with the timeout handler."""

    stage: ErrorStage = ErrorStage.STORAGE


def classify_failure(exc: BaseException, current: ErrorStage) -> tuple[ErrorStage, str]:
    """
    Attribute an exception to a stage and produce the recorded message.

    Args:
        exc: Failure raised inside the run
        current: Stage that was executing

    Returns:
        (stage, message)
    """
    if isinstance(exc, DocumentProcessingError):
        return ErrorStage(exc.stage), exc.message
    if isinstance(exc, StorageError):
        return ErrorStage.STORAGE, exc.message
    if isinstance(exc, (DatabaseError, SQLAlchemyError)):
        message = exc.message if isinstance(exc, RagBackendException) else f"{type(exc).__name__}: {exc}"
        return ErrorStage.DATABASE, message
    return current, f"{type(exc).__name__}: {exc}"


class ProcessingPipeline:
    """Orchestrate one document run and commit its outcome."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
        extractor: TextExtractor,
        embeddings: Embeddings,
        status_tracker: StatusTracker,
        settings: DocumentPipelineSettings | None = None,
        error_log: ErrorHistoryLog | None = None,
        documents: DocumentCRUD = document_crud,
        chunks: ChunkCRUD = chunk_crud,
    ) -> None:
        """
        Initialize pipeline with its collaborators.

        Args:
            session_factory: Async session factory for the relational store
            storage: Object storage holding raw documents
            extractor: Text extractor implementation
            embeddings: LangChain embeddings implementation
            status_tracker: Lifecycle state machine
            settings: Pipeline settings (uses defaults if None)
            error_log: Error history log (default instance if None)
        """
        self._settings = settings or get_pipeline_settings()
        self._session_factory = session_factory
        self._tracker = status_tracker
        self._error_log = error_log or ErrorHistoryLog(documents)
        self._documents = documents
        self._chunks = chunks
        self._extractor = extractor

        self._download_task = DownloadTask(storage)
        self._chunking_task = ChunkingTask(
            chunk_size=self._settings.chunk_size,
            chunk_overlap=self._settings.chunk_overlap,
            chars_per_token=self._settings.chars_per_token,
        )
        self._embedding_task = EmbeddingTask(
            embeddings,
            dimension=self._settings.embedding_dimension,
        )

    async def run(self, document_id: UUID, already_claimed: bool = False) -> PipelineResult:
        """
        Process a document through the full pipeline.

        Args:
            document_id: Document to process
            already_claimed: True when the caller already moved the document
                to processing (reprocess); otherwise pending -> processing is
                performed here

        Returns:
            PipelineResult: 'embedded' with chunk_count, or 'error' with the recorded ErrorRecord

        Raises:
            ConcurrencyConflict: The document was not claimable, or another
                actor (watchdog, reprocess) changed its status mid-run; a run the
                watchdog already failed returns that error instead
            DocumentNotFoundError: The document does not exist or was deleted mid-run
        """
        start_time = time.perf_counter()
        if not already_claimed:
            await self._tracker.transition(
                document_id,
                DocumentStatus.PENDING,
                DocumentStatus.PROCESSING,
                processing_stage=STAGE_DOWNLOADING,
            )

        state = _RunState()
        timeout = self._settings.pipeline_timeout_seconds
        try:
            chunk_count = await asyncio.wait_for(self._execute(document_id, state), timeout)
        except (ConcurrencyConflict, DocumentNotFoundError) as e:
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:run - Run abandoned: {e.message}",
                document_id=document_id,
            )
            raise
        except asyncio.TimeoutError:
            message = f"Processing exceeded the {timeout}s limit during {state.stage.value}"
            record = await self._fail(document_id, state.stage, message)
            return self._result(document_id, start_time, error=record)
        except asyncio.CancelledError:
            await asyncio.shield(
                self._fail(document_id, state.stage, "Processing was cancelled")
            )
            raise
        except Exception as e:
            stage, message = classify_failure(e, state.stage)
            log_exception_with_context(
                logger,
                f"{__name__}:run - Stage {stage.value} failed",
                e,
                document_id=document_id,
                stage=stage.value,
            )
            record = await self._fail(document_id, stage, message)
            return self._result(document_id, start_time, error=record)

        result = self._result(document_id, start_time, chunk_count=chunk_count)
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:run - Document embedded",
            document_id=document_id,
            chunk_count=chunk_count,
            processing_time_ms=round(result.processing_time_ms, 1),
        )
        return result

    async def _execute(self, document_id: UUID, state: _RunState) -> int:
        async with self._session_factory() as session:
            document = await self._documents.get_by_id(session, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        state.stage = ErrorStage.STORAGE
        await self._set_stage(document_id, STAGE_DOWNLOADING)
        data = await self._download_task.download(document.storage_path)

        state.stage = ErrorStage.EXTRACTION
        await self._set_stage(document_id, STAGE_EXTRACTING)
        extracted = await self._extractor.extract(data, document.filename, document.mime_type)
        validate_extracted_text(
            extracted,
            size_bytes=len(data),
            mime_type=document.mime_type,
            min_chars=self._settings.min_extracted_chars,
        )

        await self._set_stage(document_id, STAGE_CHUNKING)
        chunks = self._chunking_task.chunk(extracted)
        if not chunks:
            raise ExtractionError("Chunking produced no chunks", document_id=document_id)

        state.stage = ErrorStage.EMBEDDING
        await self._set_stage(document_id, STAGE_EMBEDDING)
        embedded = await self._embedding_task.embed(chunks)

        state.stage = ErrorStage.DATABASE
        await self._set_stage(document_id, STAGE_INSERTING)
        return await self._persist(document_id, embedded)

    async def _set_stage(self, document_id: UUID, label: str) -> None:
        """Publish progress; a run that lost its claim stops here."""
        async with self._session_factory() as session:
            async with session.begin():
                updated = await self._documents.update_if_status(
                    session,
                    document_id,
                    DocumentStatus.PROCESSING,
                    processing_stage=label,
                )
        if not updated:
            async with self._session_factory() as session:
                actual = await self._documents.get_status(session, document_id)
            if actual is None:
                raise DocumentNotFoundError(document_id)
            raise ConcurrencyConflict(document_id, DocumentStatus.PROCESSING.value, actual.value)

    async def _persist(self, document_id: UUID, chunks: list[Chunk]) -> int:
        has_page_data = any(chunk.has_page_data for chunk in chunks)
        async with self._session_factory() as session:
            async with session.begin():
                await self._chunks.delete_by_document(session, document_id)
                count = await self._chunks.bulk_create(
                    session,
                    document_id,
                    [chunk.to_row() for chunk in chunks],
                )
                event = await self._tracker.compare_and_set(
                    session,
                    document_id,
                    DocumentStatus.PROCESSING,
                    DocumentStatus.EMBEDDED,
                    chunk_count=count,
                    has_page_data=has_page_data,
                    processing_stage=None,
                )
        self._tracker.publish(event)
        return count

    async def _fail(self, document_id: UUID, stage: ErrorStage, message: str) -> ErrorRecord:
        """
        Record a failure, or adopt the record of whoever already failed the run.

        The watchdog may force a slow run to error before the run gives up;
        that run has then ended in error and its record stands.
        """
        try:
            return await self._record_failure(document_id, stage, message)
        except ConcurrencyConflict as e:
            if e.actual != DocumentStatus.ERROR.value:
                raise
            async with self._session_factory() as session:
                history = await self._error_log.read(session, document_id)
            if not history:
                raise
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:_fail - Run already failed by another actor",
                document_id=document_id,
                attempt=history[-1].attempt,
            )
            return history[-1]

    async def _record_failure(
        self,
        document_id: UUID,
        stage: ErrorStage,
        message: str,
    ) -> ErrorRecord:
        """Append the error record and move to error in one transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                event = await self._tracker.compare_and_set(
                    session,
                    document_id,
                    DocumentStatus.PROCESSING,
                    DocumentStatus.ERROR,
                    chunk_count=None,
                    processing_stage=None,
                )
                await self._chunks.delete_by_document(session, document_id)
                record, _ = await self._error_log.append(session, document_id, stage, message)
        self._tracker.publish(event)
        log_with_context(
            logger,
            logging.WARNING,
            f"{__name__}:_record_failure - Document failed",
            document_id=document_id,
            stage=stage.value,
            attempt=record.attempt,
        )
        return record

    def _result(
        self,
        document_id: UUID,
        start_time: float,
        chunk_count: int | None = None,
        error: ErrorRecord | None = None,
    ) -> PipelineResult:
        return PipelineResult(
            document_id=document_id,
            status=(DocumentStatus.ERROR if error else DocumentStatus.EMBEDDED).value,
            chunk_count=chunk_count,
            error=error,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
        )
