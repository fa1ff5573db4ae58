"""
API test fixtures.

Routers are exercised with AsyncMock services injected through
dependency_overrides; the lifespan (and its container) is never started.

Dependencies: fastapi, pytest
System role: HTTP test infrastructure
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from rag_backend.api.deps import (
    get_container,
    get_document_service,
    get_ingestion_coordinator,
    get_reprocess_orchestrator,
    get_retrieval_cache,
)
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.main import create_app


def document_row(**overrides) -> SimpleNamespace:
    """Attribute bag shaped like a DocumentModel row."""
    now = datetime.now(timezone.utc)
    values = {
        "id": uuid.uuid4(),
        "filename": "plan.pdf",
        "mime_type": "application/pdf",
        "scope_id": "p1",
        "storage_path": "p1/plan.pdf",
        "size_bytes": 12,
        "status": DocumentStatus.PENDING,
        "chunk_count": None,
        "processing_stage": None,
        "has_page_data": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def ingestion() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def document_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def reprocess() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def retrieval() -> AsyncMock:
    mock = AsyncMock()
    mock.clear_cache = MagicMock(return_value=0)
    mock.cache_stats = MagicMock()
    return mock


@pytest.fixture
def container() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(ingestion, document_service, reprocess, retrieval, container) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_ingestion_coordinator] = lambda: ingestion
    app.dependency_overrides[get_document_service] = lambda: document_service
    app.dependency_overrides[get_reprocess_orchestrator] = lambda: reprocess
    app.dependency_overrides[get_retrieval_cache] = lambda: retrieval
    app.dependency_overrides[get_container] = lambda: container
    return TestClient(app)
