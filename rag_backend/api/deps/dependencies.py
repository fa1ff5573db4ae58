"""
FastAPI dependency getters.

Each getter resolves a service from the process-wide ServiceContainer.
Tests replace get_container through app.dependency_overrides.

Dependencies: fastapi, rag_backend.dependencies
System role: Service injection for routers
"""

from functools import lru_cache

from fastapi import Depends

from rag_backend.application.services import (
    DocumentService,
    IngestionCoordinator,
    ReprocessOrchestrator,
)
from rag_backend.configs import Settings, get_settings
from rag_backend.core.retrieval import RetrievalCache
from rag_backend.dependencies import ServiceContainer
from rag_backend.dependencies import get_container as _get_container


def get_container() -> ServiceContainer:
    return _get_container()


@lru_cache
def get_settings_dependency() -> Settings:
    return get_settings()


def get_ingestion_coordinator(
    container: ServiceContainer = Depends(get_container),
) -> IngestionCoordinator:
    return container.ingestion


def get_document_service(
    container: ServiceContainer = Depends(get_container),
) -> DocumentService:
    return container.documents


def get_reprocess_orchestrator(
    container: ServiceContainer = Depends(get_container),
) -> ReprocessOrchestrator:
    return container.reprocess


def get_retrieval_cache(
    container: ServiceContainer = Depends(get_container),
) -> RetrievalCache:
    return container.retrieval_cache
