"""
Cached semantic query path for the conversation layer.

query() and enrich() never raise: embedding and search failures are
logged and turned into the fixed fallback answer (query). enrich() is
advisory and hands back the user's value unchanged on every path. Only
real search results are cached, so a transient failure or an empty
result is retried on the next call.

Dependencies: langchain_core, rag_backend.boundary.vdb, rag_backend.configs
System role: Retrieval entry point for chat
"""

import logging

from langchain_core.embeddings import Embeddings

from rag_backend.boundary.vdb.search_client import SimilaritySearchClient
from rag_backend.boundary.vdb.vector_schemas import VectorSearchResult
from rag_backend.configs.retrieval import RetrievalSettings
from rag_backend.core.exceptions import SearchError
from rag_backend.core.retrieval.query_cache import CacheStats, QueryCache, cache_key

logger = logging.getLogger(__name__)


class RetrievalCache:
    """Question -> concatenated chunk content, with a bounded TTL cache in front."""

    def __init__(
        self,
        embeddings: Embeddings,
        search_client: SimilaritySearchClient,
        settings: RetrievalSettings | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        """
        Args:
            embeddings: Embeddings used for questions (same model as the chunks)
            search_client: Similarity search client
            settings: Thresholds, cache sizing and fixed answers
            cache: Cache instance (built from settings if None)
        """
        self._settings = settings or RetrievalSettings()
        self._embeddings = embeddings
        self._search_client = search_client
        self._cache = cache or QueryCache(
            capacity=self._settings.cache_capacity,
            ttl_seconds=self._settings.cache_ttl_seconds,
        )

    async def query(self, question: str, scope_id: str | None, top_k: int | None = None) -> str:
        """
        Answer a question from the most similar chunks.

        Args:
            question: User question
            scope_id: Project scope (global documents always included)
            top_k: Chunks to concatenate (configured default if None or < 1, capped at max_top_k)

        Returns:
            str: Concatenated chunk contents, the no-information sentinel, or the fallback text
        """
        count = self._result_count(top_k)
        # Entries hold answers built from the default result count only
        cacheable = count == self._settings.top_k
        key = cache_key(scope_id, question)
        cached = self._cache.get(key) if cacheable else None
        if cached is not None:
            logger.info(f"{__name__}:query - Cache hit", extra={"scope_id": scope_id})
            return cached

        try:
            results = await self._search(question, scope_id, self._settings.match_threshold, count)
        except SearchError as e:
            logger.error(
                f"{__name__}:query - Retrieval failed: {e.message}",
                extra={"scope_id": scope_id},
            )
            return self._settings.fallback_text

        if not results:
            return self._settings.no_information_text

        answer = self._settings.result_separator.join(result.content for result in results)
        if cacheable:
            self._cache.put(key, answer)
        return answer

    async def query_with_metadata(
        self,
        question: str,
        scope_id: str | None,
        top_k: int | None = None,
    ) -> list[VectorSearchResult]:
        """
        Uncached search returning source metadata for citations.

        Returns:
            list[VectorSearchResult]: Ranked results, empty on failure
        """
        try:
            return await self._search(question, scope_id, self._settings.match_threshold, self._result_count(top_k))
        except SearchError as e:
            logger.error(
                f"{__name__}:query_with_metadata - Retrieval failed: {e.message}",
                extra={"scope_id": scope_id},
            )
            return []

    async def find_reference(
        self,
        field: str,
        raw_value: str,
        scope_id: str | None,
    ) -> VectorSearchResult | None:
        """
        Best matching reference chunk for a field value.

        Returns:
            VectorSearchResult | None: Top result above the enrich threshold,
                None when nothing matches or retrieval fails
        """
        prompt = f'Normalize and validate: {field} = "{raw_value}"'
        try:
            results = await self._search(prompt, scope_id, self._settings.enrich_threshold, 1)
        except SearchError as e:
            logger.warning(
                f"{__name__}:find_reference - Retrieval failed: {e.message}",
                extra={"scope_id": scope_id, "field": field},
            )
            return None
        return results[0] if results else None

    async def enrich(self, field: str, raw_value: str, scope_id: str | None) -> str:
        """
        Advisory lookup of reference material for a field value.

        Validation and normalization happen in the conversation layer, so the
        user's value is never replaced here.

        Args:
            field: Name of the field being filled
            raw_value: Value as given by the user
            scope_id: Project scope

        Returns:
            str: raw_value, unchanged on every path
        """
        reference = await self.find_reference(field, raw_value, scope_id)
        logger.info(
            f"{__name__}:enrich - Reference lookup finished",
            extra={"scope_id": scope_id, "field": field, "matched": reference is not None},
        )
        return raw_value

    def _result_count(self, top_k: int | None) -> int:
        """Requested result count, defaulted when missing or < 1 and capped at max_top_k."""
        if top_k is None or top_k < 1:
            return self._settings.top_k
        return min(top_k, self._settings.max_top_k)

    def clear_cache(self) -> int:
        removed = self._cache.clear()
        logger.info(f"{__name__}:clear_cache - Cache cleared", extra={"removed": removed})
        return removed

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def _search(
        self,
        text: str,
        scope_id: str | None,
        threshold: float,
        count: int,
    ) -> list[VectorSearchResult]:
        try:
            embedding = await self._embeddings.aembed_query(text)
        except Exception as e:
            raise SearchError(
                f"Query embedding failed: {type(e).__name__}: {e}",
                scope_id=scope_id,
            ) from e
        return await self._search_client.search(embedding, threshold, count, scope_id)
