"""
Celery workers module.

Durable processing queue for document pipeline jobs, plus the beat
schedule that runs the processing watchdog.

Dependencies: celery, rag_backend.configs
System role: Background task processing
"""

from celery import Celery

from rag_backend.configs import get_settings

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "rag_backend",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend,
    include=["rag_backend.workers.tasks.document_processing"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_acks_late=celery_config.task_acks_late,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=celery_config.worker_prefetch_multiplier,
    task_default_queue=celery_config.queue_name,
    beat_schedule={
        "processing-watchdog": {
            "task": "rag_backend.workers.tasks.document_processing.watchdog_sweep",
            "schedule": float(settings.pipeline.watchdog_interval_seconds),
        },
    },
)
