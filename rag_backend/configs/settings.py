"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from rag_backend.configs.base import BaseSettings
from rag_backend.configs.celery_config import CelerySettings
from rag_backend.configs.database import DatabaseSettings
from rag_backend.configs.retrieval import RetrievalSettings
from rag_backend.configs.storage import StorageSettings
from rag_backend.core.document_processing.configs import DocumentPipelineSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    pipeline: DocumentPipelineSettings = Field(default_factory=DocumentPipelineSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)

    scheduler_backend: str = Field(
        default="celery",
        description="Pipeline scheduler: 'celery' (durable queue) or 'inline' (in-process)",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins for the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from rag_backend.configs import get_settings
        settings = get_settings()
    """
    return Settings()
