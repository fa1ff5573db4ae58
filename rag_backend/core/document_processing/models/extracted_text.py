"""
Extraction output model.

Dependencies: pydantic
System role: Hand-off between extraction and chunking stages
"""

from pydantic import BaseModel, Field


class ExtractedText(BaseModel):
    """Plain text of a document, optionally annotated with [PAGE n] markers."""

    text: str
    has_page_markers: bool = Field(default=False)
    page_count: int | None = Field(default=None, description="Pages seen by the extractor")
