"""
Service container.

Builds every long-lived component once, lazily, from settings. The API,
the Celery worker and the tests all obtain services from a container;
tests construct one with fakes injected through the keyword arguments.

Dependencies: rag_backend.configs, rag_backend.application, rag_backend.boundary, rag_backend.core
System role: DI container for service injection
"""

import logging

from dotenv import load_dotenv
from langchain_core.embeddings import Embeddings
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.application.services import (
    DocumentService,
    IngestionCoordinator,
    ReprocessOrchestrator,
)
from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.boundary.vdb.match_backends import (
    LocalMatchBackend,
    MatchBackend,
    PostgresMatchBackend,
)
from rag_backend.boundary.vdb.search_client import SimilaritySearchClient
from rag_backend.configs import Settings, get_settings
from rag_backend.core.document_processing.entrypoint import ProcessingPipeline
from rag_backend.core.document_processing.job_handler import ProcessingJobHandler
from rag_backend.core.document_processing.scheduler import (
    CeleryPipelineScheduler,
    InlinePipelineScheduler,
    PipelineScheduler,
)
from rag_backend.core.document_processing.status_tracker import StatusTracker
from rag_backend.core.document_processing.tasks import (
    GeminiTextExtractor,
    LocalTextExtractor,
    TextExtractor,
)
from rag_backend.core.document_processing.watchdog import ProcessingWatchdog
from rag_backend.core.events import StatusEventBus
from rag_backend.core.retrieval.retrieval_cache import RetrievalCache

# GOOGLE_API_KEY and AWS credentials are read from the process environment
load_dotenv()

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Lazily constructed, cached service instances."""

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        storage: ObjectStorage | None = None,
        embeddings: Embeddings | None = None,
        extractor: TextExtractor | None = None,
        match_backend: MatchBackend | None = None,
        scheduler: PipelineScheduler | None = None,
        event_bus: StatusEventBus | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._session_factory = session_factory
        self._storage = storage
        self._embeddings = embeddings
        self._extractor = extractor
        self._match_backend = match_backend
        self._scheduler = scheduler
        self._event_bus = event_bus or StatusEventBus()

        self._status_tracker = None
        self._pipeline = None
        self._job_handler = None
        self._watchdog = None
        self._retrieval_cache = None
        self._ingestion = None
        self._reprocess = None
        self._documents = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from rag_backend.boundary.db.connection import get_async_session_factory

            self._session_factory = get_async_session_factory()
        return self._session_factory

    @property
    def storage(self) -> ObjectStorage:
        if self._storage is None:
            from rag_backend.boundary.storage.s3_storage import S3ObjectStorage

            self._storage = S3ObjectStorage(self.settings.storage)
        return self._storage

    @property
    def embeddings(self) -> Embeddings:
        if self._embeddings is None:
            from rag_backend.core.document_processing.embeddings_wrapper import FixedDimensionEmbeddings

            pipeline_settings = self.settings.pipeline
            self._embeddings = FixedDimensionEmbeddings(
                model=pipeline_settings.embedding_model_id,
                output_dimensionality=pipeline_settings.embedding_dimension,
            )
        return self._embeddings

    @property
    def extractor(self) -> TextExtractor:
        if self._extractor is None:
            pipeline_settings = self.settings.pipeline
            if pipeline_settings.extractor_backend == "gemini":
                self._extractor = GeminiTextExtractor.from_settings(
                    pipeline_settings.extraction_model_id,
                    pipeline_settings.supported_mime_types,
                )
            else:
                self._extractor = LocalTextExtractor(pipeline_settings.supported_mime_types)
        return self._extractor

    @property
    def match_backend(self) -> MatchBackend:
        if self._match_backend is None:
            retrieval = self.settings.retrieval
            if retrieval.match_backend == "local":
                self._match_backend = LocalMatchBackend(self.session_factory)
            else:
                self._match_backend = PostgresMatchBackend(
                    self.session_factory,
                    retrieval.match_function,
                )
        return self._match_backend

    @property
    def event_bus(self) -> StatusEventBus:
        return self._event_bus

    @property
    def status_tracker(self) -> StatusTracker:
        if self._status_tracker is None:
            self._status_tracker = StatusTracker(self.session_factory, self.event_bus)
        return self._status_tracker

    @property
    def pipeline(self) -> ProcessingPipeline:
        if self._pipeline is None:
            self._pipeline = ProcessingPipeline(
                session_factory=self.session_factory,
                storage=self.storage,
                extractor=self.extractor,
                embeddings=self.embeddings,
                status_tracker=self.status_tracker,
                settings=self.settings.pipeline,
            )
        return self._pipeline

    @property
    def job_handler(self) -> ProcessingJobHandler:
        if self._job_handler is None:
            self._job_handler = ProcessingJobHandler(self.session_factory, self.pipeline)
        return self._job_handler

    @property
    def scheduler(self) -> PipelineScheduler:
        if self._scheduler is None:
            if self.settings.scheduler_backend == "inline":
                self._scheduler = InlinePipelineScheduler(self.job_handler)
            else:
                from rag_backend.workers import celery_app

                self._scheduler = CeleryPipelineScheduler(
                    celery_app,
                    queue=self.settings.celery.queue_name,
                )
        return self._scheduler

    @property
    def watchdog(self) -> ProcessingWatchdog:
        if self._watchdog is None:
            self._watchdog = ProcessingWatchdog(
                session_factory=self.session_factory,
                status_tracker=self.status_tracker,
                scheduler=self.scheduler,
                settings=self.settings.pipeline,
            )
        return self._watchdog

    @property
    def retrieval_cache(self) -> RetrievalCache:
        if self._retrieval_cache is None:
            self._retrieval_cache = RetrievalCache(
                embeddings=self.embeddings,
                search_client=SimilaritySearchClient(self.match_backend),
                settings=self.settings.retrieval,
            )
        return self._retrieval_cache

    @property
    def ingestion(self) -> IngestionCoordinator:
        if self._ingestion is None:
            self._ingestion = IngestionCoordinator(
                session_factory=self.session_factory,
                storage=self.storage,
                scheduler=self.scheduler,
                pipeline_settings=self.settings.pipeline,
                storage_settings=self.settings.storage,
            )
        return self._ingestion

    @property
    def reprocess(self) -> ReprocessOrchestrator:
        if self._reprocess is None:
            self._reprocess = ReprocessOrchestrator(
                session_factory=self.session_factory,
                pipeline=self.pipeline,
                status_tracker=self.status_tracker,
                retrieval_cache=self.retrieval_cache,
            )
        return self._reprocess

    @property
    def documents(self) -> DocumentService:
        if self._documents is None:
            self._documents = DocumentService(
                session_factory=self.session_factory,
                storage=self.storage,
                retrieval_cache=self.retrieval_cache,
            )
        return self._documents

    def warm_up(self) -> None:
        """Build the request-path services ahead of the first request."""
        _ = self.ingestion, self.documents, self.reprocess, self.retrieval_cache
        logger.info(f"{__name__}:warm_up - Services initialized")


_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Process-wide container singleton."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer | None) -> None:
    """Replace the process-wide container (None resets it)."""
    global _container
    _container = container
