"""
Chunk domain model for document processing pipeline.

Represents a text segment with its page range and, once the embedding
stage has run, its vector.

Dependencies: pydantic
System role: Data structure for document chunks in ingestion pipeline
"""

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """Document chunk with optional embedding vector."""

    chunk_index: int = Field(ge=0, description="Position within the document")
    content: str = Field(description="Chunk text content (page markers removed)")
    token_count: int = Field(ge=0, description="Approximate token count")
    page_start: int | None = Field(default=None, description="First page the chunk spans")
    page_end: int | None = Field(default=None, description="Last page the chunk spans")
    has_page_data: bool = Field(default=False, description="Whether page boundaries are known")
    embedding: list[float] | None = Field(default=None, description="Embedding vector")

    def to_row(self) -> dict:
        """Column values for ChunkCRUD.bulk_create."""
        return self.model_dump(exclude_none=False)
