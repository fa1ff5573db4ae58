"""
Test suite for IngestionCoordinator.

Covers the store-then-record sequence and its compensation.

System role: Verification of upload atomicity across storage and database
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from rag_backend.application.services.ingestion_service import IngestionCoordinator
from rag_backend.boundary.db.CRUD.document_crud import document_crud
from rag_backend.boundary.db.models.document_model import DocumentModel, DocumentStatus
from rag_backend.core.exceptions import DatabaseError, StorageError, ValidationError


@pytest.fixture
def coordinator(session_factory, storage, scheduler, pipeline_settings, storage_settings) -> IngestionCoordinator:
    return IngestionCoordinator(
        session_factory=session_factory,
        storage=storage,
        scheduler=scheduler,
        pipeline_settings=pipeline_settings,
        storage_settings=storage_settings,
    )


async def _count_documents(session_factory) -> int:
    async with session_factory() as session:
        return await document_crud.count(session)


class TestIngest:
    async def test_ingest_should_store_record_and_queue(self, coordinator, storage, scheduler, load_document) -> None:
        # Act
        document = await coordinator.ingest(b"%PDF-1.4 data", "Wall Spec.pdf", "application/pdf", "project-1")

        # Assert
        assert document.status == DocumentStatus.PENDING
        assert document.storage_path == "project-1/WallSpec.pdf"
        assert storage.objects["project-1/WallSpec.pdf"] == b"%PDF-1.4 data"
        assert (await load_document(document.id)).scope_id == "project-1"
        assert [(j.document_id, j.attempt) for j in scheduler.jobs] == [(document.id, 1)]

    async def test_ingest_should_use_global_partition_without_scope(self, coordinator) -> None:
        document = await coordinator.ingest(b"text", "norms.txt", "text/plain", None)

        assert document.storage_path == "global/norms.txt"
        assert document.scope_id is None

    async def test_storage_failure_should_create_no_row(self, coordinator, storage, session_factory) -> None:
        storage.fail_put = True

        with pytest.raises(StorageError):
            await coordinator.ingest(b"data", "a.pdf", "application/pdf", "p")

        assert await _count_documents(session_factory) == 0

    async def test_insert_failure_should_remove_stored_object(self, coordinator, storage, session_factory) -> None:
        # Arrange
        with patch.object(document_crud, "create", side_effect=RuntimeError("connection reset")):
            # Act
            with pytest.raises(DatabaseError) as exc_info:
                await coordinator.ingest(b"data", "a.pdf", "application/pdf", "p")

        # Assert
        assert exc_info.value.rolled_back is True
        assert storage.objects == {}
        assert storage.deleted == ["p/a.pdf"]
        assert await _count_documents(session_factory) == 0

    async def test_failed_compensation_should_be_reported(self, coordinator, storage) -> None:
        storage.fail_delete = True

        with patch.object(document_crud, "create", side_effect=RuntimeError("connection reset")):
            with pytest.raises(DatabaseError) as exc_info:
                await coordinator.ingest(b"data", "a.pdf", "application/pdf", "p")

        assert exc_info.value.rolled_back is False

    async def test_duplicate_path_should_be_rejected_before_writing(self, coordinator, storage) -> None:
        await coordinator.ingest(b"v1", "a.pdf", "application/pdf", "p")

        with pytest.raises(ValidationError):
            await coordinator.ingest(b"v2", "a.pdf", "application/pdf", "p")

        assert storage.objects["p/a.pdf"] == b"v1"

    async def test_concurrent_uploads_of_same_path_should_record_one_row(
        self, coordinator, storage, session_factory
    ) -> None:
        # Act
        outcomes = await asyncio.gather(
            coordinator.ingest(b"v1", "contract.pdf", "application/pdf", "P1"),
            coordinator.ingest(b"v2", "contract.pdf", "application/pdf", "P1"),
            return_exceptions=True,
        )

        # Assert
        recorded = [o for o in outcomes if isinstance(o, DocumentModel)]
        rejected = [o for o in outcomes if isinstance(o, ValidationError)]
        assert (len(recorded), len(rejected)) == (1, 1)
        assert await _count_documents(session_factory) == 1
        assert storage.objects["P1/contract.pdf"] == b"v1"
        assert storage.deleted == []

    async def test_constraint_loser_should_leave_winner_object(
        self, coordinator, storage, session_factory, make_document
    ) -> None:
        # Arrange: another process recorded the path after our pre-check
        winner = await make_document(scope_id="p", filename="a.pdf", storage_path="p/a.pdf", data=b"v1")
        lookup = AsyncMock(side_effect=[None, winner])

        # Act
        with patch.object(document_crud, "get_by_storage_path", lookup):
            with pytest.raises(ValidationError) as exc_info:
                await coordinator.ingest(b"v2", "a.pdf", "application/pdf", "p")

        # Assert
        assert exc_info.value.details["document_id"] == str(winner.id)
        assert "p/a.pdf" in storage.objects
        assert storage.deleted == []
        assert await _count_documents(session_factory) == 1

    async def test_scheduler_failure_should_keep_document_pending(self, coordinator, scheduler, load_document) -> None:
        scheduler.fail = True

        document = await coordinator.ingest(b"data", "a.pdf", "application/pdf", "p")

        assert (await load_document(document.id)).status == DocumentStatus.PENDING

    @pytest.mark.parametrize(
        "filename,mime_type,data",
        [
            ("../etc/passwd.pdf", "application/pdf", b"x"),
            ("noextension", "application/pdf", b"x"),
            ("image.png", "image/png", b"x"),
            ("empty.pdf", "application/pdf", b""),
        ],
    )
    async def test_invalid_upload_should_be_rejected(self, coordinator, storage, filename, mime_type, data) -> None:
        with pytest.raises(ValidationError):
            await coordinator.ingest(data, filename, mime_type, "p")

        assert storage.objects == {}


class TestDirectUpload:
    async def test_presign_should_return_deterministic_path(self, coordinator) -> None:
        path, url, expires_at = await coordinator.presign_upload("plan.pdf", "application/pdf", "p")

        assert path == "p/plan.pdf"
        assert url.endswith("p/plan.pdf")
        assert expires_at is not None

    async def test_register_should_record_existing_object(self, coordinator, storage, scheduler) -> None:
        storage.objects["p/plan.pdf"] = b"%PDF"

        document = await coordinator.register_uploaded("p/plan.pdf", "plan.pdf", "application/pdf", "p", 4)

        assert document.status == DocumentStatus.PENDING
        assert scheduler.jobs[0].document_id == document.id

    async def test_register_should_reject_missing_object(self, coordinator) -> None:
        with pytest.raises(StorageError) as exc_info:
            await coordinator.register_uploaded("p/plan.pdf", "plan.pdf", "application/pdf", "p")

        assert exc_info.value.not_found is True

    async def test_register_should_reject_foreign_path(self, coordinator, storage) -> None:
        storage.objects["other/plan.pdf"] = b"%PDF"

        with pytest.raises(ValidationError):
            await coordinator.register_uploaded("other/plan.pdf", "plan.pdf", "application/pdf", "p")
