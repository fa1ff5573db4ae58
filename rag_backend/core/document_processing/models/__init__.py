"""
Models for document processing pipeline.

Exports: Chunk, ErrorRecord, ErrorStage, ExtractedText, PipelineResult, ProcessingJob
"""

from .chunk import Chunk
from .error_record import ErrorRecord, ErrorStage
from .extracted_text import ExtractedText
from .pipeline_result import PipelineResult
from .processing_job import ProcessingJob

__all__ = [
    "Chunk",
    "ErrorRecord",
    "ErrorStage",
    "ExtractedText",
    "PipelineResult",
    "ProcessingJob",
]
