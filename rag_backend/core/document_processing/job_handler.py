"""
Idempotent processing job handler.

The queue delivers at least once, so the same job may arrive twice and a
stale job may arrive after its document moved on. A job runs only when its
document is still pending and its attempt number is the one the document
expects next; everything else is acknowledged and skipped.

Dependencies: sqlalchemy, rag_backend.core.document_processing
System role: Work queue consumer
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.entrypoint import ProcessingPipeline
from rag_backend.core.document_processing.error_history import next_attempt
from rag_backend.core.document_processing.models import PipelineResult, ProcessingJob
from rag_backend.core.exceptions import ConcurrencyConflict, DocumentNotFoundError

logger = logging.getLogger(__name__)


class ProcessingJobHandler:
    """Run the pipeline for a job unless the job is a duplicate or stale."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pipeline: ProcessingPipeline,
        documents: DocumentCRUD = document_crud,
    ) -> None:
        self._session_factory = session_factory
        self._pipeline = pipeline
        self._documents = documents

    async def handle(self, job: ProcessingJob) -> PipelineResult | None:
        """
        Execute a job.

        Args:
            job: Queue message

        Returns:
            PipelineResult when the pipeline ran, None when the job was skipped
        """
        extra = {"document_id": str(job.document_id), "attempt": job.attempt}
        async with self._session_factory() as session:
            document = await self._documents.get_by_id(session, job.document_id)

        if document is None:
            logger.info(f"{__name__}:handle - Skipped, document deleted", extra=extra)
            return None
        if document.status != DocumentStatus.PENDING:
            logger.info(
                f"{__name__}:handle - Skipped, document is {document.status.value}",
                extra=extra,
            )
            return None
        expected = next_attempt(document.error_history)
        if job.attempt != expected:
            logger.info(
                f"{__name__}:handle - Skipped, stale attempt (expected {expected})",
                extra=extra,
            )
            return None

        try:
            return await self._pipeline.run(job.document_id)
        except ConcurrencyConflict:
            logger.info(f"{__name__}:handle - Skipped, claimed by another run", extra=extra)
            return None
        except DocumentNotFoundError:
            logger.info(f"{__name__}:handle - Skipped, document deleted mid-run", extra=extra)
            return None
