"""
Chunk ORM model.

Retrievable text segments with their embedding and page range.
Rows are exclusively owned by one document and removed by cascade.

Dependencies: sqlalchemy, rag_backend.boundary.db.base
System role: Vector-searchable chunk persistence
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rag_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin
from rag_backend.boundary.db.types import EmbeddingVector

if TYPE_CHECKING:
    from rag_backend.boundary.db.models.document_model import DocumentModel


class ChunkModel(Base, UUIDMixin, TimestampMixin):
    """
    Chunk ORM model.

    Constraints:
        document_id: Foreign key ON DELETE CASCADE to documents.id
    """

    __tablename__ = "document_chunks"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float]] = mapped_column(
        EmbeddingVector(),
        nullable=False,
    )
    token_count: Mapped[int] = mapped_column(Integer, nullable=False)
    page_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    page_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_page_data: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    document: Mapped["DocumentModel"] = relationship(back_populates="chunks")
