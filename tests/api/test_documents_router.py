"""
Test suite for the documents router.

System role: Verification of document HTTP contracts and error mapping
"""

import uuid
from datetime import datetime, timezone

from rag_backend.application.services.document_service import DeleteOutcome
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.models import ErrorRecord, PipelineResult
from rag_backend.core.exceptions import (
    ConcurrencyConflict,
    DatabaseError,
    DocumentNotFoundError,
    StorageError,
    ValidationError,
)
from tests.api.conftest import document_row


class TestUpload:
    def test_upload_should_return_pending_document(self, client, ingestion) -> None:
        # Arrange
        ingestion.ingest.return_value = document_row()

        # Act
        response = client.post(
            "/api/v1/documents",
            files={"file": ("plan.pdf", b"%PDF-1.4", "application/pdf")},
            data={"scope_id": "p1"},
        )

        # Assert
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        ingestion.ingest.assert_awaited_once_with(b"%PDF-1.4", "plan.pdf", "application/pdf", "p1")

    def test_upload_should_map_validation_error_to_400(self, client, ingestion) -> None:
        ingestion.ingest.side_effect = ValidationError("Unsupported file type: image/png", field="mime_type")

        response = client.post("/api/v1/documents", files={"file": ("a.png", b"x", "image/png")})

        assert response.status_code == 400
        assert response.json()["detail"]["type"] == "ValidationError"

    def test_upload_should_map_storage_failure_to_502(self, client, ingestion) -> None:
        ingestion.ingest.side_effect = StorageError("put failed", path="p1/plan.pdf", operation="put")

        response = client.post("/api/v1/documents", files={"file": ("plan.pdf", b"x", "application/pdf")})

        assert response.status_code == 502

    def test_upload_should_map_rolled_back_insert_to_500(self, client, ingestion) -> None:
        ingestion.ingest.side_effect = DatabaseError("Failed to record document", rolled_back=True)

        response = client.post("/api/v1/documents", files={"file": ("plan.pdf", b"x", "application/pdf")})

        assert response.status_code == 500


class TestDirectUpload:
    def test_presigned_url_should_return_storage_path(self, client, ingestion) -> None:
        expires_at = datetime.now(timezone.utc)
        ingestion.presign_upload.return_value = ("p1/plan.pdf", "https://storage.test/upload", expires_at)

        response = client.post(
            "/api/v1/documents/presigned-url",
            json={"filename": "plan.pdf", "content_type": "application/pdf", "scope_id": "p1"},
        )

        assert response.status_code == 200
        assert response.json()["storage_path"] == "p1/plan.pdf"

    def test_uploaded_should_register_document(self, client, ingestion) -> None:
        ingestion.register_uploaded.return_value = document_row()

        response = client.post(
            "/api/v1/documents/uploaded",
            json={"storage_path": "p1/plan.pdf", "filename": "plan.pdf", "content_type": "application/pdf", "scope_id": "p1"},
        )

        assert response.status_code == 201
        assert ingestion.register_uploaded.await_args.kwargs["storage_path"] == "p1/plan.pdf"


class TestReadEndpoints:
    def test_get_should_return_document(self, client, document_service) -> None:
        row = document_row(status=DocumentStatus.EMBEDDED, chunk_count=4, has_page_data=True)
        document_service.get_document.return_value = row

        response = client.get(f"/api/v1/documents/{row.id}")

        assert response.status_code == 200
        assert response.json()["chunk_count"] == 4

    def test_get_should_map_missing_document_to_404(self, client, document_service) -> None:
        document_id = uuid.uuid4()
        document_service.get_document.side_effect = DocumentNotFoundError(document_id)

        response = client.get(f"/api/v1/documents/{document_id}")

        assert response.status_code == 404
        assert response.json()["detail"]["details"]["document_id"] == str(document_id)

    def test_list_should_count_documents(self, client, document_service) -> None:
        document_service.list_documents.return_value = [document_row(), document_row()]

        response = client.get("/api/v1/documents", params={"scope_id": "p1"})

        assert response.json()["total"] == 2

    def test_errors_should_return_history(self, client, document_service) -> None:
        document_id = uuid.uuid4()
        document_service.get_error_history.return_value = [
            ErrorRecord(attempt=1, stage="embedding", message="quota exceeded")
        ]

        response = client.get(f"/api/v1/documents/{document_id}/errors")

        assert response.json()["errors"][0]["stage"] == "embedding"

    def test_download_url_should_map_missing_file_to_400(self, client, document_service) -> None:
        document_service.get_download_url.side_effect = ValidationError("Document has no stored file")

        response = client.get(f"/api/v1/documents/{uuid.uuid4()}/download-url")

        assert response.status_code == 400


class TestReprocess:
    def test_reprocess_should_return_run_outcome(self, client, reprocess) -> None:
        document_id = uuid.uuid4()
        reprocess.reprocess.return_value = PipelineResult(
            document_id=document_id, status="embedded", chunk_count=3, processing_time_ms=12.5
        )

        response = client.post(f"/api/v1/documents/{document_id}/reprocess")

        assert response.status_code == 200
        assert response.json()["chunk_count"] == 3

    def test_reprocess_should_map_conflict_to_409(self, client, reprocess) -> None:
        document_id = uuid.uuid4()
        reprocess.reprocess.side_effect = ConcurrencyConflict(document_id, ["embedded", "error"], "processing")

        response = client.post(f"/api/v1/documents/{document_id}/reprocess")

        assert response.status_code == 409


class TestDelete:
    def test_delete_should_return_204(self, client, document_service) -> None:
        response = client.delete(f"/api/v1/documents/{uuid.uuid4()}")

        assert response.status_code == 204

    def test_bulk_delete_should_count_outcomes(self, client, document_service) -> None:
        first, second = uuid.uuid4(), uuid.uuid4()
        document_service.bulk_delete.return_value = [
            DeleteOutcome(document_id=first, deleted=True),
            DeleteOutcome(document_id=second, deleted=False, error="Document not found"),
        ]

        response = client.post("/api/v1/documents/bulk-delete", json={"document_ids": [str(first), str(second)]})

        body = response.json()
        assert (body["deleted"], body["failed"]) == (1, 1)

    def test_bulk_delete_should_reject_empty_list(self, client) -> None:
        response = client.post("/api/v1/documents/bulk-delete", json={"document_ids": []})

        assert response.status_code == 422
