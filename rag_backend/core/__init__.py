"""
Core business logic module.

Contains the document lifecycle, processing pipeline, retrieval cache and
the exception hierarchy. Submodules are imported directly by callers.
"""

from rag_backend.core.exceptions import (
    ConcurrencyConflict,
    DatabaseError,
    DocumentNotFoundError,
    DocumentProcessingError,
    EmbeddingError,
    ExtractionError,
    InvalidTransitionError,
    PipelineTimeoutError,
    RagBackendException,
    SearchError,
    StorageError,
    ValidationError,
)

__all__ = [
    "RagBackendException",
    "ValidationError",
    "DocumentNotFoundError",
    "StorageError",
    "DatabaseError",
    "DocumentProcessingError",
    "ExtractionError",
    "EmbeddingError",
    "PipelineTimeoutError",
    "SearchError",
    "ConcurrencyConflict",
    "InvalidTransitionError",
]
