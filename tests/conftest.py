"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite session factory, fakes for object storage,
text extraction, embeddings and the scheduler, and builders for the
pipeline and its collaborators.

Dependencies: pytest, sqlalchemy, aiosqlite, langchain_core
System role: Test infrastructure and fixture management
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from langchain_core.embeddings import Embeddings
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rag_backend.boundary.db.base import Base
from rag_backend.boundary.db.connection import enable_sqlite_foreign_keys
from rag_backend.boundary.db.CRUD.document_crud import document_crud
from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus
from rag_backend.configs.retrieval import RetrievalSettings
from rag_backend.configs.storage import StorageSettings
from rag_backend.core.document_processing.configs import DocumentPipelineSettings
from rag_backend.core.document_processing.entrypoint import ProcessingPipeline
from rag_backend.core.document_processing.models import ExtractedText, ProcessingJob
from rag_backend.core.document_processing.status_tracker import StatusTracker
from rag_backend.core.events import StatusEventBus
from rag_backend.core.exceptions import ExtractionError, StorageError

DIMENSION = 4

PDF_TEXT = (
    "[PAGE 1]\nThe wall assembly uses mineral wool insulation with a U-value of 0.24.\n\n"
    "[PAGE 2]\nFire resistance class REI 90 applies to all load bearing walls."
)


class FakeObjectStorage:
    """In-memory ObjectStorage with switchable failures."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_put = False
        self.fail_get = False
        self.fail_delete = False
        self.deleted: list[str] = []

    def put(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise StorageError("put failed", path=path, operation="put")
        self.objects[path] = data

    def get(self, path: str) -> bytes:
        if self.fail_get:
            raise StorageError("get failed", path=path, operation="get")
        if path not in self.objects:
            raise StorageError(f"Object not found: {path}", path=path, operation="get", not_found=True)
        return self.objects[path]

    def delete(self, path: str) -> None:
        if self.fail_delete:
            raise StorageError("delete failed", path=path, operation="delete")
        self.objects.pop(path, None)
        self.deleted.append(path)

    def exists(self, path: str) -> bool:
        return path in self.objects

    def presigned_upload_url(self, path: str, content_type: str) -> tuple[str, datetime]:
        return f"https://storage.test/upload/{path}", datetime.now(timezone.utc) + timedelta(hours=1)

    def presigned_download_url(self, path: str, expires_in: int | None = None) -> tuple[str, datetime]:
        return f"https://storage.test/download/{path}", datetime.now(timezone.utc) + timedelta(minutes=5)


class FakeExtractor:
    """TextExtractor returning fixed text; can fail or block until released."""

    def __init__(self, text: str = PDF_TEXT, has_page_markers: bool = True) -> None:
        self.text = text
        self.has_page_markers = has_page_markers
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()
        self.calls = 0

    async def extract(self, data: bytes, filename: str, mime_type: str) -> ExtractedText:
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return ExtractedText(text=self.text, has_page_markers=self.has_page_markers)


class FakeEmbeddings(Embeddings):
    """Deterministic embeddings: keyword-driven vectors of DIMENSION floats."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0, 0.0, 0.0]
        self.fail_after: int | None = None
        self.fail_queries = False
        self.document_calls = 0
        self.query_calls = 0

    def _vector(self, text: str) -> list[float]:
        for keyword, vector in self.vectors.items():
            if keyword in text:
                return vector
        return self.default

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls += 1
        if self.fail_after is not None and self.document_calls > self.fail_after:
            raise RuntimeError("quota exceeded")
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls += 1
        if self.fail_queries:
            raise RuntimeError("embedding service unavailable")
        return self._vector(text)

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> list[float]:
        return self.embed_query(text)


class RecordingScheduler:
    """PipelineScheduler that only records submitted jobs."""

    def __init__(self) -> None:
        self.jobs: list[ProcessingJob] = []
        self.fail = False

    async def submit(self, job: ProcessingJob) -> None:
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.jobs.append(job)


@pytest.fixture
async def session_factory():
    """
    In-memory SQLite database shared by every session of one test.

    Yields:
        async_sessionmaker: Factory with expire_on_commit=False, like production
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def pipeline_settings() -> DocumentPipelineSettings:
    return DocumentPipelineSettings(
        chunk_size=200,
        chunk_overlap=20,
        embedding_dimension=DIMENSION,
        min_extracted_chars=10,
        pipeline_timeout_seconds=5,
        watchdog_interval_seconds=60,
    )


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(bucket="test-bucket")


@pytest.fixture
def retrieval_settings() -> RetrievalSettings:
    return RetrievalSettings(match_backend="local", match_threshold=0.7, enrich_threshold=0.6)


@pytest.fixture
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def event_bus() -> StatusEventBus:
    return StatusEventBus()


@pytest.fixture
def status_tracker(session_factory, event_bus) -> StatusTracker:
    return StatusTracker(session_factory, event_bus)


@pytest.fixture
def pipeline(session_factory, storage, extractor, embeddings, status_tracker, pipeline_settings) -> ProcessingPipeline:
    return ProcessingPipeline(
        session_factory=session_factory,
        storage=storage,
        extractor=extractor,
        embeddings=embeddings,
        status_tracker=status_tracker,
        settings=pipeline_settings,
    )


@pytest.fixture
def make_document(session_factory, storage):
    """
    Factory inserting a document row (and its stored object).

    Returns:
        Callable: async (status=..., scope_id=..., **columns) -> DocumentModel
    """

    async def _make(
        status: DocumentStatus = DocumentStatus.PENDING,
        scope_id: str | None = None,
        filename: str = "plan.pdf",
        data: bytes = b"%PDF-1.4 test",
        **columns,
    ) -> DocumentModel:
        path = columns.pop("storage_path", f"{scope_id or 'global'}/{uuid.uuid4().hex}-{filename}")
        if path is not None:
            storage.objects[path] = data
        async with session_factory() as session:
            async with session.begin():
                document = await document_crud.create(
                    session,
                    filename=filename,
                    mime_type=columns.pop("mime_type", "application/pdf"),
                    storage_path=path,
                    scope_id=scope_id,
                    size_bytes=len(data),
                    status=status,
                    error_history=columns.pop("error_history", []),
                    **columns,
                )
        return document

    return _make


@pytest.fixture
def load_document(session_factory):
    """Factory re-reading a document row from the database."""

    async def _load(document_id: uuid.UUID) -> DocumentModel | None:
        async with session_factory() as session:
            return await document_crud.get_by_id(session, document_id)

    return _load


@pytest.fixture
def extraction_failure() -> ExtractionError:
    return ExtractionError("No text extracted from document", mime_type="application/pdf")
