"""
Test suite for RetrievalCache.

Searches persisted chunks through LocalMatchBackend on SQLite.

System role: Verification of the cached query path
"""

import pytest

from rag_backend.boundary.db.CRUD.chunk_crud import chunk_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.boundary.vdb.match_backends import LocalMatchBackend
from rag_backend.boundary.vdb.search_client import SimilaritySearchClient
from rag_backend.core.retrieval.retrieval_cache import RetrievalCache
from tests.conftest import FakeEmbeddings

WALL = [1.0, 0.0, 0.0, 0.0]
FIRE = [0.0, 1.0, 0.0, 0.0]


@pytest.fixture
def query_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings(vectors={"wall": WALL, "fire": FIRE}, default=[0.0, 0.0, 1.0, 0.0])


@pytest.fixture
def retrieval(session_factory, query_embeddings, retrieval_settings) -> RetrievalCache:
    return RetrievalCache(
        embeddings=query_embeddings,
        search_client=SimilaritySearchClient(LocalMatchBackend(session_factory)),
        settings=retrieval_settings,
    )


@pytest.fixture
def add_chunks(session_factory, make_document):
    async def _add(status=DocumentStatus.EMBEDDED, scope_id=None, chunks=()):
        document = await make_document(status=status, scope_id=scope_id)
        rows = [
            {"chunk_index": i, "content": content, "embedding": vector, "token_count": 1}
            for i, (content, vector) in enumerate(chunks)
        ]
        async with session_factory() as session:
            async with session.begin():
                await chunk_crud.bulk_create(session, document.id, rows)
        return document

    return _add


class TestQuery:
    async def test_query_should_join_matching_chunks(self, retrieval, add_chunks) -> None:
        # Arrange
        await add_chunks(scope_id="p1", chunks=[("Wall U-value 0.24", WALL), ("REI 90", FIRE)])

        # Act
        answer = await retrieval.query("wall insulation?", "p1")

        # Assert
        assert answer == "Wall U-value 0.24"

    async def test_query_should_include_global_documents(self, retrieval, retrieval_settings, add_chunks) -> None:
        await add_chunks(scope_id=None, chunks=[("Global wall norm", WALL)])
        await add_chunks(scope_id="p1", chunks=[("Project wall detail", WALL)])
        await add_chunks(scope_id="p2", chunks=[("Other project wall", WALL)])

        answer = await retrieval.query("wall", "p1")

        parts = answer.split(retrieval_settings.result_separator)
        assert sorted(parts) == ["Global wall norm", "Project wall detail"]

    async def test_query_should_skip_documents_not_embedded(self, retrieval, retrieval_settings, add_chunks) -> None:
        await add_chunks(status=DocumentStatus.PROCESSING, chunks=[("Half processed wall", WALL)])

        assert await retrieval.query("wall", None) == retrieval_settings.no_information_text

    async def test_query_should_serve_repeat_from_cache(self, retrieval, query_embeddings, add_chunks) -> None:
        await add_chunks(chunks=[("Wall U-value 0.24", WALL)])

        first = await retrieval.query("wall question", None)
        second = await retrieval.query("  Wall   QUESTION ", None)

        assert first == second
        assert query_embeddings.query_calls == 1
        assert retrieval.cache_stats().hits == 1

    async def test_query_should_not_cache_empty_result(self, retrieval, query_embeddings) -> None:
        await retrieval.query("wall", None)
        await retrieval.query("wall", None)

        assert query_embeddings.query_calls == 2
        assert retrieval.cache_stats().size == 0

    async def test_query_should_return_fallback_on_failure(self, retrieval, retrieval_settings, query_embeddings) -> None:
        query_embeddings.fail_queries = True

        answer = await retrieval.query("wall", None)

        assert answer == retrieval_settings.fallback_text
        assert retrieval.cache_stats().size == 0

    async def test_clear_cache_should_force_fresh_search(self, retrieval, query_embeddings, add_chunks) -> None:
        await add_chunks(chunks=[("Wall U-value 0.24", WALL)])
        await retrieval.query("wall", None)

        assert retrieval.clear_cache() == 1
        await retrieval.query("wall", None)

        assert query_embeddings.query_calls == 2


class TestQueryWithMetadata:
    async def test_sources_should_carry_citation_fields(self, retrieval, add_chunks) -> None:
        document = await add_chunks(chunks=[("Wall U-value 0.24", WALL)])

        results = await retrieval.query_with_metadata("wall", None)

        assert len(results) == 1
        assert results[0].document_id == document.id
        assert results[0].filename == document.filename
        assert results[0].similarity == pytest.approx(1.0)

    async def test_sources_should_be_empty_on_failure(self, retrieval, query_embeddings) -> None:
        query_embeddings.fail_queries = True

        assert await retrieval.query_with_metadata("wall", None) == []


class TestResultCount:
    async def test_oversized_top_k_should_be_capped(self, retrieval, retrieval_settings, add_chunks) -> None:
        # Arrange
        await add_chunks(chunks=[(f"Wall layer {i}", WALL) for i in range(4)])

        # Act
        answer = await retrieval.query("wall layers", None, top_k=500)

        # Assert
        assert len(answer.split(retrieval_settings.result_separator)) == 4

    async def test_negative_top_k_should_use_default(self, retrieval, retrieval_settings, add_chunks) -> None:
        await add_chunks(chunks=[(f"Wall layer {i}", WALL) for i in range(4)])

        answer = await retrieval.query("wall layers", None, top_k=-1)

        assert len(answer.split(retrieval_settings.result_separator)) == retrieval_settings.top_k

    async def test_sources_should_accept_oversized_top_k(self, retrieval, add_chunks) -> None:
        await add_chunks(chunks=[("Wall U-value 0.24", WALL)])

        results = await retrieval.query_with_metadata("wall", None, top_k=500)

        assert len(results) == 1


class TestEnrich:
    async def test_enrich_should_keep_raw_value_when_reference_matches(self, retrieval, add_chunks) -> None:
        # Arrange
        await add_chunks(chunks=[("Tarif table: wall insulation class WLG 035, level 3", WALL)])

        # Act
        value = await retrieval.enrich("wall insulation", "3", None)

        # Assert
        assert value == "3"

    async def test_find_reference_should_return_best_match(self, retrieval, add_chunks) -> None:
        await add_chunks(chunks=[("Mineral wool, WLG 035", WALL)])

        reference = await retrieval.find_reference("wall insulation", "mineral wool", None)

        assert reference.content == "Mineral wool, WLG 035"

    async def test_enrich_should_keep_raw_value_without_match(self, retrieval) -> None:
        assert await retrieval.enrich("colour", "blue", None) == "blue"
        assert await retrieval.find_reference("colour", "blue", None) is None

    async def test_enrich_should_keep_raw_value_on_failure(self, retrieval, query_embeddings) -> None:
        query_embeddings.fail_queries = True

        assert await retrieval.enrich("wall", "raw", None) == "raw"
        assert await retrieval.find_reference("wall", "raw", None) is None
