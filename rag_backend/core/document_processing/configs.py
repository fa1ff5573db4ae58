"""
Configuration settings for document processing pipeline.

Provides environment-based configuration for extraction, chunking, embedding
and the run timeout enforced by the watchdog.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentPipelineSettings(BaseSettings):
    """Settings for document ingestion pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="DOC_PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Chunking settings
    chunk_size: int = Field(
        default=1000,
        description="Maximum chunk size in characters",
    )
    chunk_overlap: int = Field(
        default=200,
        description="Overlap between consecutive chunks",
    )
    chars_per_token: int = Field(
        default=4,
        description="Characters per token used for approximate token counts",
    )

    # Embedding settings
    embedding_model_id: str = Field(
        default="models/text-embedding-004",
        description="Google Gemini embedding model ID",
    )
    embedding_dimension: int = Field(
        default=768,
        description="Fixed output dimension of every stored vector",
    )

    # Extraction settings
    extractor_backend: str = Field(
        default="local",
        description="Text extractor: 'local' (pypdf/utf-8) or 'gemini' (multimodal)",
    )
    extraction_model_id: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used by the multimodal extractor",
    )
    min_extracted_chars: int = Field(
        default=50,
        description="Extracted text shorter than this is treated as a failed extraction",
    )
    supported_mime_types: list[str] = Field(
        default=[
            "application/pdf",
            "text/plain",
            "text/markdown",
            "text/csv",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ],
        description="MIME types accepted for ingestion",
    )

    # Run bounds
    pipeline_timeout_seconds: int = Field(
        default=300,
        description="Wall-clock limit for one pipeline run",
    )
    watchdog_interval_seconds: int = Field(
        default=60,
        description="Interval between watchdog sweeps",
    )


@lru_cache
def get_pipeline_settings() -> DocumentPipelineSettings:
    """
    Get cached pipeline settings instance.

    Returns:
        DocumentPipelineSettings: Singleton settings loaded from environment
    """
    return DocumentPipelineSettings()
