"""
Celery configuration settings.

Broker and result backend configuration for the durable processing queue.
Jobs are acknowledged late so a worker crash redelivers them (at-least-once).

Dependencies: pydantic, pydantic_settings
System role: Work queue configuration for document processing
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CelerySettings(BaseSettings):
    """Celery with Redis broker and result backend."""

    model_config = SettingsConfigDict(
        env_prefix="CELERY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Broker URL for processing jobs",
    )
    result_backend: str = Field(
        default="redis://localhost:6379/1",
        description="Result backend URL",
    )

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list[str] = Field(default=["json"], description="Accepted content types")
    timezone: str = Field(default="UTC", description="Celery timezone")

    task_acks_late: bool = Field(
        default=True,
        description="Acknowledge after the handler finishes so lost workers redeliver",
    )
    worker_prefetch_multiplier: int = Field(
        default=1,
        description="Jobs reserved per worker process",
    )
    queue_name: str = Field(default="document-processing", description="Queue for pipeline jobs")

    # Broker-level retry for transient infrastructure failures only
    task_max_retries: int = Field(default=3, description="Maximum task retry attempts")
    task_retry_backoff: int = Field(default=30, description="Retry backoff base in seconds")
    task_retry_backoff_max: int = Field(default=600, description="Maximum retry backoff in seconds")
