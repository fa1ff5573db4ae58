"""
Retrieval module.

- QueryCache: bounded TTL cache with insertion-order eviction
- RetrievalCache: cached question answering over persisted chunks
"""

from rag_backend.core.retrieval.query_cache import CacheStats, QueryCache, normalize_question
from rag_backend.core.retrieval.retrieval_cache import RetrievalCache

__all__ = ["CacheStats", "QueryCache", "RetrievalCache", "normalize_question"]
