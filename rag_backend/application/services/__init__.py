"""Service orchestrators."""

from .document_service import DeleteOutcome, DocumentService
from .ingestion_service import IngestionCoordinator
from .reprocess_service import ReprocessOrchestrator

__all__ = [
    "DeleteOutcome",
    "DocumentService",
    "IngestionCoordinator",
    "ReprocessOrchestrator",
]
