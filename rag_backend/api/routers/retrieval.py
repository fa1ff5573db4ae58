"""
Retrieval API endpoints.

Routes:
- POST /retrieval/query - Cached question answering over embedded chunks
- POST /retrieval/sources - Uncached ranked chunks with citation metadata
- POST /retrieval/enrich - Reference lookup for a form field value
- GET /retrieval/cache - Cache statistics
- DELETE /retrieval/cache - Drop every cached answer

Retrieval never fails the request: search errors become the fallback
answer (query), an empty list (sources) or no reference (enrich).

Dependencies: fastapi, rag_backend.core.retrieval, rag_backend.models
System role: Retrieval HTTP API
"""

from fastapi import APIRouter, Depends

from rag_backend.api.deps import get_retrieval_cache
from rag_backend.core.retrieval import RetrievalCache
from rag_backend.models.retrieval import (
    CacheClearResponse,
    CacheStatsResponse,
    EnrichRequest,
    EnrichResponse,
    QueryRequest,
    QueryResponse,
    SourceResponse,
    SourcesResponse,
)

router = APIRouter(prefix="/retrieval", tags=["retrieval"])


@router.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    retrieval: RetrievalCache = Depends(get_retrieval_cache),
) -> QueryResponse:
    answer = await retrieval.query(request.question, request.scope_id, top_k=request.top_k)
    return QueryResponse(answer=answer)


@router.post("/sources", response_model=SourcesResponse)
async def query_sources(
    request: QueryRequest,
    retrieval: RetrievalCache = Depends(get_retrieval_cache),
) -> SourcesResponse:
    results = await retrieval.query_with_metadata(request.question, request.scope_id, top_k=request.top_k)
    return SourcesResponse(sources=[SourceResponse(**r.model_dump()) for r in results])


@router.post("/enrich", response_model=EnrichResponse)
async def enrich(
    request: EnrichRequest,
    retrieval: RetrievalCache = Depends(get_retrieval_cache),
) -> EnrichResponse:
    reference = await retrieval.find_reference(request.field, request.value, request.scope_id)
    return EnrichResponse(
        field=request.field,
        value=request.value,
        matched=reference is not None,
        reference=reference.content if reference is not None else None,
    )


@router.get("/cache", response_model=CacheStatsResponse)
async def cache_stats(
    retrieval: RetrievalCache = Depends(get_retrieval_cache),
) -> CacheStatsResponse:
    stats = retrieval.cache_stats()
    return CacheStatsResponse(
        size=stats.size,
        capacity=stats.capacity,
        ttl_seconds=stats.ttl_seconds,
        hits=stats.hits,
        misses=stats.misses,
    )


@router.delete("/cache", response_model=CacheClearResponse)
async def clear_cache(
    retrieval: RetrievalCache = Depends(get_retrieval_cache),
) -> CacheClearResponse:
    return CacheClearResponse(removed=retrieval.clear_cache())
