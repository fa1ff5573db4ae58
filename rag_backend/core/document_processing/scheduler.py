"""
Pipeline schedulers.

Submitting a ProcessingJob is the only way a new document reaches the
pipeline. CeleryPipelineScheduler hands it to the durable broker queue;
InlinePipelineScheduler runs it as a tracked asyncio task in the current
process (development and tests).

Dependencies: celery, asyncio
System role: Work queue producer
"""

import asyncio
import logging
from typing import Protocol

from celery import Celery

from rag_backend.core.document_processing.models import ProcessingJob

logger = logging.getLogger(__name__)

PROCESS_DOCUMENT_TASK = "rag_backend.workers.tasks.document_processing.process_document"


class PipelineScheduler(Protocol):
    async def submit(self, job: ProcessingJob) -> None:
        ...


class CeleryPipelineScheduler:
    """Publish jobs to the Celery broker."""

    def __init__(self, app: Celery, queue: str | None = None) -> None:
        self._app = app
        self._queue = queue

    async def submit(self, job: ProcessingJob) -> None:
        """
        Publish a job; the task id is derived from (document_id, attempt).

        Raises:
            kombu/celery errors when the broker is unreachable
        """
        await asyncio.to_thread(
            self._app.send_task,
            PROCESS_DOCUMENT_TASK,
            args=[str(job.document_id), job.attempt],
            task_id=job.task_id,
            queue=self._queue,
        )
        logger.info(
            f"{__name__}:submit - Job queued",
            extra={"document_id": str(job.document_id), "attempt": job.attempt},
        )


class InlinePipelineScheduler:
    """Run jobs as background asyncio tasks of the current event loop."""

    def __init__(self, handler) -> None:
        """
        Args:
            handler: ProcessingJobHandler executing each job
        """
        self._handler = handler
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def submit(self, job: ProcessingJob) -> None:
        task = asyncio.create_task(self._handler.handle(job), name=f"process:{job.task_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"{__name__}:_on_done - Job {task.get_name()} failed: {type(exc).__name__}: {exc}",
                exc_info=exc,
            )

    async def drain(self) -> None:
        """Wait until every submitted job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
