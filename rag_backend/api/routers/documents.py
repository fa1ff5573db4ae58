"""
Document API endpoints.

Routes:
- POST /documents - Multipart upload (stored, recorded, queued)
- POST /documents/presigned-url - Presigned URL for direct upload
- POST /documents/uploaded - Notify direct upload completion
- GET /documents - List documents of a scope
- GET /documents/{id} - Document status and metadata
- GET /documents/{id}/errors - Failure history
- GET /documents/{id}/download-url - Short-lived download link
- POST /documents/{id}/reprocess - Re-run the pipeline
- DELETE /documents/{id} - Delete document, chunks and stored file
- POST /documents/bulk-delete - Delete several documents

Dependencies: fastapi, rag_backend.application.services, rag_backend.models
System role: Document HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from rag_backend.api.deps import (
    get_document_service,
    get_ingestion_coordinator,
    get_reprocess_orchestrator,
)
from rag_backend.api.routers.errors import to_http_exception
from rag_backend.application.services import (
    DocumentService,
    IngestionCoordinator,
    ReprocessOrchestrator,
)
from rag_backend.core.exceptions import RagBackendException
from rag_backend.models.document import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    DeleteOutcomeResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentUploadedNotification,
    DownloadUrlResponse,
    ErrorHistoryResponse,
    PresignedUrlRequest,
    PresignedUrlResponse,
    ReprocessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    scope_id: str | None = Form(default=None),
    ingestion: IngestionCoordinator = Depends(get_ingestion_coordinator),
) -> DocumentResponse:
    """
    Upload a document through the backend.

    The file is stored, recorded as pending and queued for processing.
    Poll GET /documents/{id} for status.

    Raises:
        HTTPException(400): Invalid filename/type, empty file, duplicate name in scope
        HTTPException(502): Storage write failed
        HTTPException(500): Row could not be recorded (stored file removed)
    """
    data = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    logger.info(
        f"{__name__}:upload_document - Upload received",
        extra={"doc_filename": file.filename, "scope_id": scope_id, "size_bytes": len(data)},
    )
    try:
        document = await ingestion.ingest(data, file.filename or "", mime_type, scope_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return DocumentResponse.model_validate(document)


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_upload_url(
    request: PresignedUrlRequest,
    ingestion: IngestionCoordinator = Depends(get_ingestion_coordinator),
) -> PresignedUrlResponse:
    """
    Generate presigned URL for direct upload.

    After a successful upload the client must call POST /documents/uploaded
    with the returned storage_path.
    """
    try:
        path, url, expires_at = await ingestion.presign_upload(
            request.filename, request.content_type, request.scope_id
        )
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return PresignedUrlResponse(
        presigned_url=url,
        storage_path=path,
        expires_at=expires_at,
        content_type=request.content_type,
    )


@router.post("/uploaded", response_model=DocumentResponse, status_code=201)
async def document_uploaded(
    notification: DocumentUploadedNotification,
    ingestion: IngestionCoordinator = Depends(get_ingestion_coordinator),
) -> DocumentResponse:
    """Record a directly uploaded file and queue it for processing."""
    try:
        document = await ingestion.register_uploaded(
            storage_path=notification.storage_path,
            filename=notification.filename,
            mime_type=notification.content_type,
            scope_id=notification.scope_id,
            size_bytes=notification.size_bytes,
        )
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return DocumentResponse.model_validate(document)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    scope_id: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentListResponse:
    """List documents of a scope, newest first (global documents when scope_id is omitted)."""
    documents = await document_service.list_documents(scope_id, limit=limit, offset=offset)
    items = [DocumentResponse.model_validate(doc) for doc in documents]
    return DocumentListResponse(documents=items, total=len(items))


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_documents(
    request: BulkDeleteRequest,
    document_service: DocumentService = Depends(get_document_service),
) -> BulkDeleteResponse:
    """Delete several documents; each id succeeds or fails on its own."""
    outcomes = await document_service.bulk_delete(request.document_ids)
    results = [
        DeleteOutcomeResponse(document_id=o.document_id, deleted=o.deleted, error=o.error)
        for o in outcomes
    ]
    deleted = sum(1 for r in results if r.deleted)
    return BulkDeleteResponse(results=results, deleted=deleted, failed=len(results) - deleted)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    try:
        document = await document_service.get_document(document_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return DocumentResponse.model_validate(document)


@router.get("/{document_id}/errors", response_model=ErrorHistoryResponse)
async def get_document_errors(
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> ErrorHistoryResponse:
    try:
        errors = await document_service.get_error_history(document_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return ErrorHistoryResponse(document_id=document_id, errors=errors)


@router.get("/{document_id}/download-url", response_model=DownloadUrlResponse)
async def get_download_url(
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> DownloadUrlResponse:
    try:
        url, expires_at = await document_service.get_download_url(document_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return DownloadUrlResponse(url=url, expires_at=expires_at)


@router.post("/{document_id}/reprocess", response_model=ReprocessResponse)
async def reprocess_document(
    document_id: UUID,
    reprocess: ReprocessOrchestrator = Depends(get_reprocess_orchestrator),
) -> ReprocessResponse:
    """
    Re-run the pipeline for an embedded or failed document.

    Runs synchronously; the response carries the outcome of the new run.

    Raises:
        HTTPException(404): Document not found
        HTTPException(409): Document is pending or already processing
        HTTPException(400): Document has no stored file
    """
    try:
        result = await reprocess.reprocess(document_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
    return ReprocessResponse(**result.model_dump())


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> None:
    """Delete a document, its chunks and its stored file."""
    try:
        await document_service.delete_document(document_id)
    except RagBackendException as e:
        raise to_http_exception(e) from e
