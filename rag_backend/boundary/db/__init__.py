"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - DocumentModel, DocumentStatus, ChunkModel: Domain entities
  - document_crud, chunk_crud: CRUD operation singletons

Dependencies: sqlalchemy, rag_backend.configs
System role: Relational store adapter for documents and their chunks
"""

from rag_backend.boundary.db.base import Base, TimestampMixin, UUIDMixin
from rag_backend.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from rag_backend.boundary.db.models import ChunkModel, DocumentModel, DocumentStatus
from rag_backend.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    DocumentCRUD,
    chunk_crud,
    document_crud,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "DocumentModel",
    "DocumentStatus",
    "ChunkModel",
    "BaseCRUD",
    "DocumentCRUD",
    "ChunkCRUD",
    "document_crud",
    "chunk_crud",
]
