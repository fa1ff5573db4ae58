"""
Exception hierarchy for the RAG backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class RagBackendException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(RagBackendException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class DocumentNotFoundError(RagBackendException):
    """Raised when a document row cannot be found."""

    def __init__(self, document_id: Any, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = str(document_id)
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}", details)


class StorageError(RagBackendException):
    """Raised when an object storage operation fails."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        not_found: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize storage error.

        Args:
            message: Error message
            path: Object path involved
            operation: Operation that failed (put, get, delete)
            not_found: True when the object does not exist
            details: Additional context
        """
        details = details or {}
        if path:
            details["path"] = path
        if operation:
            details["operation"] = operation
        self.path = path
        self.not_found = not_found
        super().__init__(message, details)


class DatabaseError(RagBackendException):
    """Raised when a relational store operation fails."""

    def __init__(
        self,
        message: str,
        rolled_back: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize database error.

        Args:
            message: Error message
            rolled_back: True when compensating cleanup already ran
            details: Additional context
        """
        details = details or {}
        details["rolled_back"] = rolled_back
        self.rolled_back = rolled_back
        super().__init__(message, details)


class DocumentProcessingError(RagBackendException):
    """Base exception for pipeline stage failures; carries the failing stage."""

    stage: str = "extraction"

    def __init__(
        self,
        message: str,
        document_id: Any = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if document_id:
            details["document_id"] = str(document_id)
        if stage:
            self.stage = stage
        details["stage"] = self.stage
        super().__init__(message, details)


class ExtractionError(DocumentProcessingError):
    """Raised when text extraction or chunking yields nothing usable."""

    stage = "extraction"

    def __init__(
        self,
        message: str,
        document_id: Any = None,
        mime_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if mime_type:
            details["mime_type"] = mime_type
        super().__init__(message, document_id, details=details)


class EmbeddingError(DocumentProcessingError):
    """Raised when embedding generation fails."""

    stage = "embedding"


class PipelineTimeoutError(DocumentProcessingError):
    """Raised when a run exceeds its wall-clock limit."""


class SearchError(RagBackendException):
    """Raised when the similarity search fails. Query-time only, never persisted."""

    def __init__(
        self,
        message: str,
        scope_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if scope_id:
            details["scope_id"] = scope_id
        super().__init__(message, details)


class ConcurrencyConflict(RagBackendException):
    """Raised when a compare-and-swap status transition loses the race."""

    def __init__(
        self,
        document_id: Any,
        expected: Any,
        actual: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details.update({
            "document_id": str(document_id),
            "expected": str(expected),
            "actual": str(actual),
        })
        self.document_id = document_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Document {document_id} is '{actual}', expected {expected}",
            details,
        )


class InvalidTransitionError(RagBackendException):
    """Raised for a status change that is not an edge of the lifecycle."""

    def __init__(self, document_id: Any, from_status: Any, to_status: Any) -> None:
        self.document_id = document_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Illegal transition {from_status} -> {to_status}",
            {"document_id": str(document_id)},
        )
