"""
Test suite for DocumentCRUD.

System role: Verification of conditional status updates and scope queries
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from rag_backend.boundary.db.base import utcnow
from rag_backend.boundary.db.CRUD.document_crud import document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.exceptions import ConcurrencyConflict, DocumentNotFoundError


class TestCompareAndSetStatus:
    async def test_cas_should_move_expected_status(self, session_factory, make_document, load_document) -> None:
        # Arrange
        document = await make_document()

        # Act
        async with session_factory() as session:
            async with session.begin():
                previous = await document_crud.compare_and_set_status(
                    session, document.id, {DocumentStatus.PENDING}, DocumentStatus.PROCESSING, chunk_count=0
                )

        # Assert
        assert previous == DocumentStatus.PENDING
        reloaded = await load_document(document.id)
        assert reloaded.status == DocumentStatus.PROCESSING
        assert reloaded.chunk_count == 0

    async def test_cas_should_reject_unexpected_status(self, session_factory, make_document, load_document) -> None:
        document = await make_document(status=DocumentStatus.EMBEDDED)

        with pytest.raises(ConcurrencyConflict) as exc_info:
            async with session_factory() as session:
                async with session.begin():
                    await document_crud.compare_and_set_status(
                        session, document.id, {DocumentStatus.PENDING}, DocumentStatus.PROCESSING
                    )

        assert exc_info.value.actual == "embedded"
        assert (await load_document(document.id)).status == DocumentStatus.EMBEDDED

    async def test_cas_should_raise_for_unknown_document(self, session_factory) -> None:
        with pytest.raises(DocumentNotFoundError):
            async with session_factory() as session:
                await document_crud.compare_and_set_status(
                    session, uuid.uuid4(), {DocumentStatus.PENDING}, DocumentStatus.PROCESSING
                )


class TestUpdateIfStatus:
    async def test_update_should_apply_while_status_matches(self, session_factory, make_document, load_document) -> None:
        document = await make_document(status=DocumentStatus.PROCESSING)

        async with session_factory() as session:
            async with session.begin():
                updated = await document_crud.update_if_status(
                    session, document.id, DocumentStatus.PROCESSING, processing_stage="embedding"
                )

        assert updated is True
        assert (await load_document(document.id)).processing_stage == "embedding"

    async def test_update_should_skip_when_status_changed(self, session_factory, make_document, load_document) -> None:
        document = await make_document(status=DocumentStatus.ERROR)

        async with session_factory() as session:
            async with session.begin():
                updated = await document_crud.update_if_status(
                    session, document.id, DocumentStatus.PROCESSING, processing_stage="embedding"
                )

        assert updated is False
        assert (await load_document(document.id)).processing_stage is None


class TestScopeQueries:
    async def test_scope_none_should_select_global_documents(self, session_factory, make_document) -> None:
        await make_document(scope_id=None, filename="global.pdf")
        await make_document(scope_id="p1", filename="scoped.pdf")

        async with session_factory() as session:
            documents = await document_crud.get_by_scope(session, None)

        assert [d.filename for d in documents] == ["global.pdf"]

    async def test_scope_query_should_page_results(self, session_factory, make_document) -> None:
        for name in ("a.pdf", "b.pdf", "c.pdf"):
            await make_document(scope_id="p1", filename=name)

        async with session_factory() as session:
            page = await document_crud.get_by_scope(session, "p1", limit=2, offset=1)

        assert len(page) == 2

    async def test_get_by_storage_path_should_find_row(self, session_factory, make_document) -> None:
        document = await make_document(storage_path="p1/plan.pdf")

        async with session_factory() as session:
            found = await document_crud.get_by_storage_path(session, "p1/plan.pdf")
            missing = await document_crud.get_by_storage_path(session, "p1/other.pdf")

        assert found.id == document.id
        assert missing is None

    async def test_storage_path_should_be_unique(self, make_document) -> None:
        await make_document(storage_path="p1/plan.pdf")

        with pytest.raises(IntegrityError):
            await make_document(storage_path="p1/plan.pdf")


class TestStaleQueries:
    async def test_stale_processing_should_use_run_start(self, session_factory, make_document) -> None:
        old = await make_document(
            status=DocumentStatus.PROCESSING, processing_started_at=utcnow() - timedelta(hours=1)
        )
        await make_document(status=DocumentStatus.PROCESSING, processing_started_at=utcnow())

        async with session_factory() as session:
            stale = await document_crud.get_stale_processing(session, utcnow() - timedelta(minutes=10))

        assert [d.id for d in stale] == [old.id]

    async def test_stale_pending_should_ignore_other_statuses(self, session_factory, make_document) -> None:
        pending = await make_document()
        await make_document(status=DocumentStatus.EMBEDDED)

        async with session_factory() as session:
            stale = await document_crud.get_stale_pending(session, utcnow() + timedelta(minutes=1))

        assert [d.id for d in stale] == [pending.id]
