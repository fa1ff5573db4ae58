"""API-specific dependencies."""

from .dependencies import (
    get_container,
    get_document_service,
    get_ingestion_coordinator,
    get_reprocess_orchestrator,
    get_retrieval_cache,
    get_settings_dependency,
)

__all__ = [
    "get_container",
    "get_document_service",
    "get_ingestion_coordinator",
    "get_reprocess_orchestrator",
    "get_retrieval_cache",
    "get_settings_dependency",
]
