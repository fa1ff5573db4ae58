"""
Similarity search client.

Single entry point for nearest-chunk lookups. Backend failures surface as
SearchError so the retrieval layer can absorb them.

Dependencies: rag_backend.boundary.vdb.match_backends, rag_backend.core.exceptions
System role: Vector store client for retrieval
"""

import logging

from rag_backend.boundary.vdb.match_backends import MatchBackend
from rag_backend.boundary.vdb.vector_schemas import VectorQuery, VectorSearchResult
from rag_backend.core.exceptions import SearchError

logger = logging.getLogger(__name__)


class SimilaritySearchClient:
    """Wrap a match backend with validation and error translation."""

    def __init__(self, backend: MatchBackend) -> None:
        self._backend = backend

    async def search(
        self,
        embedding: list[float],
        match_threshold: float,
        match_count: int,
        scope_id: str | None,
    ) -> list[VectorSearchResult]:
        """
        Rank chunks by similarity to an embedding.

        Args:
            embedding: Query vector
            match_threshold: Minimum similarity for a result
            match_count: Maximum number of results
            scope_id: Project scope (global documents always included)

        Returns:
            list[VectorSearchResult]: Results ordered by descending similarity

        Raises:
            SearchError: Empty embedding, out-of-range parameters or backend failure
        """
        if not embedding:
            raise SearchError("Query embedding is empty", scope_id=scope_id)

        try:
            query = VectorQuery(
                embedding=embedding,
                match_threshold=match_threshold,
                match_count=match_count,
                scope_id=scope_id,
            )
        except ValueError as e:
            raise SearchError(f"Invalid search parameters: {e}", scope_id=scope_id) from e

        try:
            results = await self._backend.match(query)
        except Exception as e:
            raise SearchError(
                f"Similarity search failed: {type(e).__name__}: {e}",
                scope_id=scope_id,
            ) from e

        logger.info(
            f"{__name__}:search - Search complete",
            extra={"scope_id": scope_id, "results": len(results), "threshold": match_threshold},
        )
        return results
