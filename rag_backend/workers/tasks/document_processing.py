"""
Document processing Celery tasks.

Task: process_document(document_id, attempt)
Flow: idempotency check -> pipeline run -> embedded | error

Task: watchdog_sweep()
Flow: stale processing -> error, stale pending -> re-submitted

Pipeline failures are recorded on the document, not raised, so the broker
only retries infrastructure failures (database unreachable and similar).

Dependencies: celery, rag_backend.dependencies, rag_backend.workers
System role: Work queue consumer
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker

from rag_backend.boundary.db.connection import create_unpooled_engine
from rag_backend.core.document_processing.models import ProcessingJob
from rag_backend.dependencies import ServiceContainer
from rag_backend.observability import set_correlation_id
from rag_backend.observability.correlation import clear_correlation_id
from rag_backend.workers import celery_app, celery_config

logger = logging.getLogger(__name__)


async def _with_container(work):
    """Run a coroutine function against a container bound to a fresh engine."""
    engine = create_unpooled_engine()
    session_factory = async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        return await work(ServiceContainer(session_factory=session_factory))
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    acks_late=True,
    reject_on_worker_lost=True,
    autoretry_for=(OperationalError,),
    max_retries=celery_config.task_max_retries,
    retry_backoff=celery_config.task_retry_backoff,
    retry_backoff_max=celery_config.task_retry_backoff_max,
)
def process_document(self, document_id: str, attempt: int):
    """
    Run the pipeline for one queued job.

    Args:
        document_id: Document UUID as string
        attempt: Attempt number the job was submitted for

    Returns:
        dict: Outcome summary ('skipped', 'embedded' or 'error')
    """
    job = ProcessingJob(document_id=UUID(document_id), attempt=attempt)
    set_correlation_id(document_id)
    try:
        result = asyncio.run(_with_container(lambda c: c.job_handler.handle(job)))
    finally:
        clear_correlation_id()

    if result is None:
        return {"document_id": document_id, "attempt": attempt, "status": "skipped"}
    return {
        "document_id": document_id,
        "attempt": attempt,
        "status": result.status,
        "chunk_count": result.chunk_count,
    }


@celery_app.task
def watchdog_sweep():
    """
    Recover documents stuck in processing or pending.

    Returns:
        dict: Ids forced to error and ids re-submitted
    """
    report = asyncio.run(_with_container(lambda c: c.watchdog.sweep()))
    if report.timed_out or report.resubmitted:
        logger.warning(
            f"{__name__}:watchdog_sweep - Recovered documents",
            extra={
                "timed_out": len(report.timed_out),
                "resubmitted": len(report.resubmitted),
            },
        )
    return {
        "timed_out": [str(i) for i in report.timed_out],
        "resubmitted": [str(i) for i in report.resubmitted],
    }
