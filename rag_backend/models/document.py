"""
Document domain models and schemas.

Request/response schemas for document operations.

Dependencies: pydantic
System role: Document API contracts
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.models import ErrorRecord


class DocumentResponse(BaseModel):
    """Response schema for document operations."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    filename: str
    mime_type: str
    scope_id: str | None = None
    storage_path: str | None = None
    size_bytes: int | None = None
    status: DocumentStatus
    chunk_count: int | None = None
    processing_stage: str | None = None
    has_page_data: bool | None = None
    created_at: datetime
    updated_at: datetime | None = None


class DocumentListResponse(BaseModel):
    """Document list response."""

    documents: list[DocumentResponse]
    total: int


class ErrorHistoryResponse(BaseModel):
    """Failure history of a document, oldest first."""

    document_id: uuid.UUID
    errors: list[ErrorRecord]


class PresignedUrlRequest(BaseModel):
    """Request schema for generating presigned upload URL."""

    filename: str = Field(description="Original filename from user")
    content_type: str = Field(description="MIME type of the file")
    scope_id: str | None = Field(default=None, description="Project scope, omitted for global documents")


class PresignedUrlResponse(BaseModel):
    """Response schema with presigned URL for direct upload."""

    presigned_url: str = Field(description="URL for uploading the file")
    storage_path: str = Field(description="Object key (needed for upload notification)")
    expires_at: datetime = Field(description="When the URL expires")
    content_type: str = Field(description="Content type to use in upload")


class DocumentUploadedNotification(BaseModel):
    """Request schema for notifying the backend that a direct upload completed."""

    storage_path: str = Field(description="Object key from presigned URL response")
    filename: str = Field(description="Original filename")
    content_type: str = Field(description="MIME type of the file")
    scope_id: str | None = Field(default=None, description="Project scope")
    size_bytes: int | None = Field(default=None, ge=0, description="Uploaded size")


class DownloadUrlResponse(BaseModel):
    url: str
    expires_at: datetime


class ReprocessResponse(BaseModel):
    """Outcome of a synchronous reprocess run."""

    document_id: uuid.UUID
    status: str
    chunk_count: int | None = None
    error: ErrorRecord | None = None
    processing_time_ms: float


class BulkDeleteRequest(BaseModel):
    document_ids: list[uuid.UUID] = Field(min_length=1)


class DeleteOutcomeResponse(BaseModel):
    document_id: uuid.UUID
    deleted: bool
    error: str | None = None


class BulkDeleteResponse(BaseModel):
    results: list[DeleteOutcomeResponse]
    deleted: int
    failed: int
