"""
Pipeline result model for document processing.

Represents the outcome of one pipeline run: either a chunk count or the
error record that was persisted for the failure.

Dependencies: pydantic
System role: Return type for ProcessingPipeline.run()
"""

import uuid

from pydantic import BaseModel, Field

from .error_record import ErrorRecord


class PipelineResult(BaseModel):
    """Result of document processing pipeline execution."""

    document_id: uuid.UUID = Field(description="Processed document")
    status: str = Field(description="Final status: 'embedded' or 'error'")
    chunk_count: int | None = Field(default=None, description="Persisted chunks on success")
    error: ErrorRecord | None = Field(default=None, description="Recorded failure, if any")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")

    @property
    def succeeded(self) -> bool:
        return self.error is None
