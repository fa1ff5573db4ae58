"""
CRUD operations package.

Exports:
  - BaseCRUD: Generic CRUD base
  - DocumentCRUD, document_crud: Document operations and singleton
  - ChunkCRUD, chunk_crud: Chunk operations and singleton
"""

from rag_backend.boundary.db.CRUD.base_crud import BaseCRUD
from rag_backend.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud

__all__ = [
    "BaseCRUD",
    "DocumentCRUD",
    "ChunkCRUD",
    "document_crud",
    "chunk_crud",
]
