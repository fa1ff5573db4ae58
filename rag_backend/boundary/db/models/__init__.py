"""
Database models package.

Exports:
  - DocumentModel, DocumentStatus: Document ORM model and status enum
  - ChunkModel: Embedded chunk ORM model

Dependencies: sqlalchemy, rag_backend.boundary.db.base
System role: Database model definitions for domain entities
"""

from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus
from rag_backend.boundary.db.models.chunk_model import ChunkModel

__all__ = [
    "DocumentModel",
    "DocumentStatus",
    "ChunkModel",
]
