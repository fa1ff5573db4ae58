"""
Processing watchdog.

A worker that dies mid-run leaves its document in processing forever. The
watchdog forces runs older than the pipeline timeout (plus one sweep
interval of grace) into error, attributing the failure to the stage the
run last reported, and re-submits pending documents whose job was lost.

Dependencies: sqlalchemy, rag_backend.core.document_processing
System role: Liveness guard for the processing queue
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.base import utcnow
from rag_backend.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.configs import DocumentPipelineSettings
from rag_backend.core.document_processing.entrypoint import STAGE_LABEL_TO_ERROR_STAGE
from rag_backend.core.document_processing.error_history import ErrorHistoryLog, next_attempt
from rag_backend.core.document_processing.models import ErrorStage, ProcessingJob
from rag_backend.core.document_processing.scheduler import PipelineScheduler
from rag_backend.core.document_processing.status_tracker import StatusTracker
from rag_backend.core.exceptions import ConcurrencyConflict, DocumentNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class WatchdogReport:
    """Documents acted on by one sweep."""

    timed_out: list[UUID] = field(default_factory=list)
    resubmitted: list[UUID] = field(default_factory=list)


class ProcessingWatchdog:
    """Periodic sweep over stuck documents."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        status_tracker: StatusTracker,
        scheduler: PipelineScheduler,
        settings: DocumentPipelineSettings,
        error_log: ErrorHistoryLog | None = None,
        documents: DocumentCRUD = document_crud,
        chunks: ChunkCRUD = chunk_crud,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._tracker = status_tracker
        self._scheduler = scheduler
        self._settings = settings
        self._error_log = error_log or ErrorHistoryLog(documents)
        self._documents = documents
        self._chunks = chunks
        self._clock = clock

    async def sweep(self) -> WatchdogReport:
        """
        Force timed-out runs to error and re-submit stuck pending documents.

        Returns:
            WatchdogReport: Ids of timed-out and re-submitted documents
        """
        now = self._clock()
        timeout = self._settings.pipeline_timeout_seconds
        grace = self._settings.watchdog_interval_seconds
        report = WatchdogReport()

        async with self._session_factory() as session:
            stale_runs = await self._documents.get_stale_processing(
                session, now - timedelta(seconds=timeout + grace)
            )
            stuck_pending = await self._documents.get_stale_pending(
                session, now - timedelta(seconds=grace)
            )

        for document in stale_runs:
            stage = STAGE_LABEL_TO_ERROR_STAGE.get(document.processing_stage, ErrorStage.STORAGE)
            message = (
                f"Processing timed out after {timeout}s "
                f"(last stage: {document.processing_stage or 'unknown'})"
            )
            if await self._force_error(document.id, stage, message):
                report.timed_out.append(document.id)

        for document in stuck_pending:
            job = ProcessingJob(
                document_id=document.id,
                attempt=next_attempt(document.error_history),
            )
            try:
                await self._scheduler.submit(job)
            except Exception as e:
                logger.error(
                    f"{__name__}:sweep - Re-submit failed: {type(e).__name__}: {e}",
                    extra={"document_id": str(document.id)},
                )
                continue
            report.resubmitted.append(document.id)

        if report.timed_out or report.resubmitted:
            logger.warning(
                f"{__name__}:sweep - Recovered documents",
                extra={
                    "timed_out": len(report.timed_out),
                    "resubmitted": len(report.resubmitted),
                },
            )
        return report

    async def _force_error(self, document_id: UUID, stage: ErrorStage, message: str) -> bool:
        try:
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
                    await self._error_log.append(session, document_id, stage, message)
        except (ConcurrencyConflict, DocumentNotFoundError):
            # The run finished or the document was deleted since the scan
            return False
        self._tracker.publish(event)
        return True
