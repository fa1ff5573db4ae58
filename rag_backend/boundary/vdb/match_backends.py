"""
Similarity match backends.

PostgresMatchBackend calls the match_documents_with_metadata SQL function
(pgvector cosine distance). LocalMatchBackend ranks persisted chunks
in-process and serves SQLite development databases and tests.

Both restrict results to embedded documents of the requested scope plus
global documents.

Dependencies: sqlalchemy, rag_backend.boundary.db
System role: Vector similarity search implementations
"""

import logging
import math
from typing import Protocol, Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.CRUD.chunk_crud import chunk_crud
from rag_backend.boundary.vdb.vector_schemas import VectorQuery, VectorSearchResult

logger = logging.getLogger(__name__)


class MatchBackend(Protocol):
    """Ranked nearest-chunk lookup."""

    async def match(self, query: VectorQuery) -> list[VectorSearchResult]:
        ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors; 0.0 if either is zero."""
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class PostgresMatchBackend:
    """Similarity search through the SQL function installed by create_tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        function_name: str = "match_documents_with_metadata",
    ) -> None:
        if not function_name.isidentifier():
            raise ValueError(f"Invalid SQL function name: {function_name}")
        self._session_factory = session_factory
        self._statement = text(
            f"SELECT * FROM {function_name}("
            "CAST(:query_embedding AS vector), :match_threshold, :match_count, :filter_scope_id)"
        )

    async def match(self, query: VectorQuery) -> list[VectorSearchResult]:
        literal = "[" + ",".join(repr(float(v)) for v in query.embedding) + "]"
        async with self._session_factory() as session:
            result = await session.execute(
                self._statement,
                {
                    "query_embedding": literal,
                    "match_threshold": query.match_threshold,
                    "match_count": query.match_count,
                    "filter_scope_id": query.scope_id,
                },
            )
            rows = result.mappings().all()

        return [
            VectorSearchResult(
                chunk_id=row["id"],
                document_id=row["document_id"],
                content=row["content"],
                similarity=float(row["similarity"]),
                filename=row["filename"],
                chunk_index=row["chunk_index"],
                page_start=row["page_start"],
                page_end=row["page_end"],
            )
            for row in rows
        ]


class LocalMatchBackend:
    """Brute-force cosine ranking over persisted chunk embeddings."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def match(self, query: VectorQuery) -> list[VectorSearchResult]:
        async with self._session_factory() as session:
            candidates = await chunk_crud.get_searchable(session, query.scope_id)

        scored = []
        for chunk, filename in candidates:
            similarity = cosine_similarity(query.embedding, chunk.embedding)
            if similarity > query.match_threshold:
                scored.append((similarity, chunk, filename))

        scored.sort(key=lambda item: item[0], reverse=True)
        logger.debug(
            f"{__name__}:match - Ranked chunks",
            extra={"candidates": len(candidates), "matches": len(scored)},
        )
        return [
            VectorSearchResult(
                chunk_id=chunk.id,
                document_id=chunk.document_id,
                content=chunk.content,
                similarity=similarity,
                filename=filename,
                chunk_index=chunk.chunk_index,
                page_start=chunk.page_start,
                page_end=chunk.page_end,
            )
            for similarity, chunk, filename in scored[: query.match_count]
        ]
