"""
Task modules for document processing pipeline.

Exports: DownloadTask, LocalTextExtractor, GeminiTextExtractor, TextExtractor,
ChunkingTask, EmbeddingTask, validate_extracted_text
"""

from .chunking_task import ChunkingTask
from .download_task import DownloadTask
from .embedding_task import EmbeddingTask
from .extraction_task import (
    GeminiTextExtractor,
    LocalTextExtractor,
    TextExtractor,
    validate_extracted_text,
)

__all__ = [
    "DownloadTask",
    "TextExtractor",
    "LocalTextExtractor",
    "GeminiTextExtractor",
    "validate_extracted_text",
    "ChunkingTask",
    "EmbeddingTask",
]
