"""
Document ORM model.

Represents uploaded documents with processing status, the append-only
error history and chunking metadata.

Dependencies: sqlalchemy, rag_backend.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import enum
from datetime import datetime
from typing import Any, TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rag_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from rag_backend.boundary.db.models.chunk_model import ChunkModel


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    PENDING: Stored and recorded, awaiting a pipeline run
    PROCESSING: A pipeline run holds the document
    EMBEDDED: Chunks persisted, ready for retrieval
    ERROR: Last run failed; latest error_history record explains why
    """

    PENDING = "pending"
    PROCESSING = "processing"
    EMBEDDED = "embedded"
    ERROR = "error"


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: Upload (PENDING) → pipeline run (PROCESSING) → EMBEDDED or
    ERROR. Reprocessing moves EMBEDDED/ERROR back to PROCESSING.

    Attributes:
        id: UUID primary key (auto-generated)
        filename: Original filename
        mime_type: Content type given at upload
        storage_path: Object key in the documents bucket
        scope_id: Owning project, None for global documents
        size_bytes: Stored object size
        status: Current processing state
        chunk_count: Persisted chunk count after a successful run
        processing_stage: Human-readable step of the active run
        error_history: Sequence of error records (a legacy single object on old rows)
        has_page_data: Tri-state page boundary flag (None = undetermined)
        processing_started_at: Start of the active or last run
    """

    __tablename__ = "documents"

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(127), nullable=False)

    storage_path: Mapped[str | None] = mapped_column(
        String(1024),
        nullable=True,
        unique=True,
        doc="Object key for the raw document; one row per object",
    )

    scope_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Project scope; NULL means global",
    )

    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(
            DocumentStatus,
            native_enum=False,
            length=16,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=DocumentStatus.PENDING,
        index=True,
    )

    chunk_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processing_stage: Mapped[str | None] = mapped_column(String(64), nullable=True)

    error_history: Mapped[Any] = mapped_column(
        JSON,
        nullable=True,
        doc="List of error records; legacy rows hold a single object",
    )

    has_page_data: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    processing_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    chunks: Mapped[list["ChunkModel"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
