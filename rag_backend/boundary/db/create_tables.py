"""
Database table creation script.

Creates all tables defined in ORM models and, on PostgreSQL, installs the
pgvector extension and the similarity search function used by retrieval.

Dependencies: sqlalchemy, rag_backend.configs
System role: Database schema initialization

Usage:
    python -m rag_backend.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from rag_backend.boundary.db.base import Base
from rag_backend.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from rag_backend.boundary.db.models import ChunkModel, DocumentModel  # noqa: F401

logger = logging.getLogger(__name__)

MATCH_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION match_documents_with_metadata(
    query_embedding vector(768),
    match_threshold float,
    match_count int,
    filter_scope_id text DEFAULT NULL
)
RETURNS TABLE (
    id uuid,
    document_id uuid,
    content text,
    similarity float,
    filename text,
    chunk_index int,
    page_start int,
    page_end int
)
LANGUAGE sql STABLE
AS $$
    SELECT
        c.id,
        c.document_id,
        c.content,
        1 - (c.embedding::vector(768) <=> query_embedding) AS similarity,
        d.filename,
        c.chunk_index,
        c.page_start,
        c.page_end
    FROM document_chunks c
    JOIN documents d ON d.id = c.document_id
    WHERE d.status = 'embedded'
      AND (d.scope_id IS NULL OR d.scope_id = filter_scope_id)
      AND 1 - (c.embedding::vector(768) <=> query_embedding) > match_threshold
    ORDER BY c.embedding::vector(768) <=> query_embedding
    LIMIT match_count;
$$;
"""


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: CREATE TABLE IF NOT EXISTS semantics and CREATE OR REPLACE
    for the search function, so safe to run multiple times.

    Args:
        engine: Engine to use (defaults to the configured engine)

    Raises:
        SQLAlchemyError: If database connection fails or table creation fails
    """
    engine = engine or get_async_engine()

    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
        if conn.dialect.name == "postgresql":
            await conn.execute(text(MATCH_FUNCTION_SQL))
            logger.info(f"{__name__}:create_all_tables - Similarity function installed")

    logger.info(f"{__name__}:create_all_tables - Tables created")


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info(f"{__name__}:drop_all_tables - Tables dropped")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_all_tables())
