"""
Reprocess orchestrator.

Re-runs the pipeline for an embedded or failed document. Claiming the
document (status -> processing), clearing its chunks and resetting its
counters happen in one transaction; if another run holds the document the
transaction rolls back and the caller gets ConcurrencyConflict.

Dependencies: sqlalchemy, rag_backend.core
System role: Retry / refresh use case
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.entrypoint import ProcessingPipeline
from rag_backend.core.document_processing.models import PipelineResult
from rag_backend.core.document_processing.status_tracker import StatusTracker
from rag_backend.core.exceptions import DocumentNotFoundError, ValidationError
from rag_backend.core.retrieval.retrieval_cache import RetrievalCache

logger = logging.getLogger(__name__)

REPROCESSABLE = frozenset({DocumentStatus.EMBEDDED, DocumentStatus.ERROR})


class ReprocessOrchestrator:
    """Clean up and re-run the pipeline for one document."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pipeline: ProcessingPipeline,
        status_tracker: StatusTracker,
        retrieval_cache: RetrievalCache | None = None,
        documents: DocumentCRUD = document_crud,
        chunks: ChunkCRUD = chunk_crud,
    ) -> None:
        self._session_factory = session_factory
        self._pipeline = pipeline
        self._tracker = status_tracker
        self._retrieval_cache = retrieval_cache
        self._documents = documents
        self._chunks = chunks

    async def reprocess(self, document_id: UUID) -> PipelineResult:
        """
        Reprocess a document.

        Args:
            document_id: Document to reprocess

        Returns:
            PipelineResult: Outcome of the new run (the pipeline records failures itself)

        Raises:
            DocumentNotFoundError: No such document
            ValidationError: Document has no stored file
            ConcurrencyConflict: Document is pending or already processing
        """
        async with self._session_factory() as session:
            async with session.begin():
                document = await self._documents.get_by_id(session, document_id)
                if document is None:
                    raise DocumentNotFoundError(document_id)
                if not document.storage_path:
                    raise ValidationError("Document has no stored file", field="storage_path")

                event = await self._tracker.compare_and_set(
                    session,
                    document_id,
                    REPROCESSABLE,
                    DocumentStatus.PROCESSING,
                    chunk_count=None,
                    processing_stage=None,
                )
                removed = await self._chunks.delete_by_document(session, document_id)
        self._tracker.publish(event)

        logger.info(
            f"{__name__}:reprocess - Document claimed for reprocessing",
            extra={
                "document_id": str(document_id),
                "previous_status": event.old_status,
                "chunks_removed": removed,
            },
        )

        try:
            return await self._pipeline.run(document_id, already_claimed=True)
        finally:
            if self._retrieval_cache is not None:
                self._retrieval_cache.clear_cache()
