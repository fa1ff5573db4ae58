"""
Retrieval request/response schemas.

Dependencies: pydantic
System role: Retrieval API contracts
"""

import uuid

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    question: str = Field(min_length=1, description="Natural-language question")
    scope_id: str | None = Field(default=None, description="Project scope; global documents are always included")
    top_k: int | None = Field(default=None, ge=1, le=50)


class QueryResponse(BaseModel):
    answer: str = Field(description="Retrieved passages joined by the separator, or a fixed message")


class SourceResponse(BaseModel):
    """One retrieved chunk with its citation metadata."""

    chunk_id: uuid.UUID | None = None
    document_id: uuid.UUID | None = None
    filename: str | None = None
    chunk_index: int | None = None
    content: str
    similarity: float
    page_start: int | None = None
    page_end: int | None = None


class SourcesResponse(BaseModel):
    sources: list[SourceResponse]


class EnrichRequest(BaseModel):
    field: str = Field(min_length=1, description="Name of the field being filled")
    value: str = Field(description="Raw value entered by the user")
    scope_id: str | None = None


class EnrichResponse(BaseModel):
    field: str
    value: str = Field(description="The value as entered; enrichment never replaces it")
    matched: bool = Field(description="True when a reference chunk passed the enrich threshold")
    reference: str | None = Field(default=None, description="Best matching reference content, if any")


class CacheClearResponse(BaseModel):
    removed: int


class CacheStatsResponse(BaseModel):
    size: int
    capacity: int
    ttl_seconds: float
    hits: int
    misses: int
