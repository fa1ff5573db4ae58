"""
Vector search schemas.

Pydantic models for similarity search queries and ranked results.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

import uuid

from pydantic import BaseModel, Field


class VectorQuery(BaseModel):
    """Query parameters for a similarity search."""

    embedding: list[float] = Field(description="Query embedding vector")
    match_threshold: float = Field(
        default=0.7,
        description="Minimum cosine similarity (0.0-1.0)",
        ge=0.0,
        le=1.0,
    )
    match_count: int = Field(default=3, description="Number of results to return", ge=1, le=100)
    scope_id: str | None = Field(
        default=None,
        description="Project scope; global documents are always included",
    )


class VectorSearchResult(BaseModel):
    """Single ranked chunk returned by a similarity search."""

    chunk_id: uuid.UUID | None = Field(default=None, description="Chunk identifier")
    document_id: uuid.UUID | None = Field(default=None, description="Owning document")
    content: str = Field(description="Chunk text content")
    similarity: float = Field(description="Cosine similarity to the query (higher is closer)")
    filename: str | None = Field(default=None, description="Source document filename")
    chunk_index: int | None = Field(default=None, description="Position of the chunk in its document")
    page_start: int | None = Field(default=None, description="First source page, if known")
    page_end: int | None = Field(default=None, description="Last source page, if known")
