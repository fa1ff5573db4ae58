"""
Document processing pipeline for ingestion.

Extraction, chunking, embedding and chunk persistence for one document per
run, plus the status state machine, error history, queue schedulers, the
idempotent job handler and the watchdog. Import concrete classes from
their modules; this package only re-exports settings and models.

Dependencies: langchain_community, langchain_text_splitters, langchain_google_genai, pydantic
System role: Document ingestion pipeline
"""

from .configs import (
    DocumentPipelineSettings,
    get_pipeline_settings,
)
from .models import Chunk, ErrorRecord, ErrorStage, PipelineResult, ProcessingJob

__all__ = [
    "DocumentPipelineSettings",
    "get_pipeline_settings",
    "Chunk",
    "ErrorRecord",
    "ErrorStage",
    "PipelineResult",
    "ProcessingJob",
]
