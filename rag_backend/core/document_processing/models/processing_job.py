"""
Processing job message.

The unit of work submitted to the queue. (document_id, attempt) is the
idempotency key: a redelivered or duplicated job for an attempt that has
already run is skipped by the handler.

Dependencies: pydantic
System role: Work queue message contract
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class ProcessingJob(BaseModel):
    """Request to run the pipeline once for a pending document."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "document_id": "550e8400-e29b-41d4-a716-446655440000",
                "attempt": 1,
            }
        },
    )

    document_id: uuid.UUID = Field(..., description="Document to process")
    attempt: int = Field(default=1, ge=1, description="len(error_history) + 1 at submission")

    @property
    def task_id(self) -> str:
        """Deterministic queue task id."""
        return f"{self.document_id}:{self.attempt}"
