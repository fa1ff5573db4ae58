"""
Vector search boundary layer.

- SimilaritySearchClient: search entry point raising SearchError
- PostgresMatchBackend: pgvector SQL function backend (production)
- LocalMatchBackend: in-process cosine ranking (SQLite development)

Dependencies: sqlalchemy, pydantic
System role: Vector store adapter for RAG retrieval
"""

from rag_backend.boundary.vdb.match_backends import (
    LocalMatchBackend,
    MatchBackend,
    PostgresMatchBackend,
)
from rag_backend.boundary.vdb.search_client import SimilaritySearchClient
from rag_backend.boundary.vdb.vector_schemas import VectorQuery, VectorSearchResult

__all__ = [
    "MatchBackend",
    "LocalMatchBackend",
    "PostgresMatchBackend",
    "SimilaritySearchClient",
    "VectorQuery",
    "VectorSearchResult",
]
