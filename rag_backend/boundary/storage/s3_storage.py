"""
S3 object storage for raw documents.

Reads, writes and deletes document objects and generates presigned URLs
for direct browser upload and download. Works against AWS S3 or any
S3-compatible endpoint (MinIO, Supabase storage, localstack).

Dependencies: boto3, botocore, tenacity
System role: Object storage adapter for ingestion and the pipeline
"""

import logging
from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from rag_backend.configs.storage import StorageSettings
from rag_backend.core.exceptions import StorageError

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_TRANSIENT_CODES = {
    "500",
    "503",
    "InternalError",
    "ServiceUnavailable",
    "SlowDown",
    "RequestTimeout",
    "Throttling",
    "ThrottlingException",
}


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "Unknown")


def _is_transient(exc: BaseException) -> bool:
    """Retry throttling, 5xx and connection-level failures only."""
    if isinstance(exc, ClientError):
        return _error_code(exc) in _TRANSIENT_CODES
    return isinstance(exc, BotoCoreError)


_transient_retry = retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(_MAX_ATTEMPTS),
    wait=wait_exponential_jitter(initial=0.5, max=8, jitter=1),
    before_sleep=lambda retry_state: logger.warning(
        f"{__name__}:{retry_state.fn.__name__} - Retry "
        f"{retry_state.attempt_number}/{_MAX_ATTEMPTS} after transient storage error"
    ),
    reraise=True,
)


class S3ObjectStorage:
    """S3 client for the documents bucket."""

    def __init__(self, settings: StorageSettings, client=None) -> None:
        """
        Initialize S3 storage.

        Args:
            settings: Bucket, region and presigned URL configuration
            client: Optional preconfigured boto3 S3 client (tests inject a mock)
        """
        self._settings = settings
        self._bucket = settings.bucket
        self._s3_client = client or boto3.client(
            "s3",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
        )

    def put(self, path: str, data: bytes, content_type: str) -> None:
        """
        Upload bytes, overwriting any existing object at path.

        Raises:
            StorageError: When the upload fails after retries
        """
        try:
            self._put_object(path, data, content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload object: {e}", path=path, operation="put") from e
        logger.info(
            f"{__name__}:put - Object stored",
            extra={"path": path, "size_bytes": len(data)},
        )

    def get(self, path: str) -> bytes:
        """
        Download an object's bytes.

        Raises:
            StorageError: not_found=True when the object does not exist
        """
        try:
            return self._get_object(path)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise StorageError(
                    f"Object not found: {path}", path=path, operation="get", not_found=True
                ) from e
            raise StorageError(f"Failed to download object: {e}", path=path, operation="get") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to download object: {e}", path=path, operation="get") from e

    def delete(self, path: str) -> None:
        """
        Delete an object. S3 treats deleting a missing key as success.

        Raises:
            StorageError: When the delete request fails
        """
        try:
            self._delete_object(path)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete object: {e}", path=path, operation="delete") from e
        logger.info(f"{__name__}:delete - Object removed", extra={"path": path})

    def exists(self, path: str) -> bool:
        """
        Check if an object exists.

        Returns:
            bool: True if the object exists, False otherwise
        """
        try:
            self._s3_client.head_object(Bucket=self._bucket, Key=path)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StorageError(f"Failed to inspect object: {e}", path=path, operation="head") from e

    def presigned_upload_url(self, path: str, content_type: str) -> tuple[str, datetime]:
        """
        Generate presigned URL for uploading a document directly from a browser.

        Args:
            path: Object key
            content_type: MIME type the client must send

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)
        """
        expires_in = self._settings.presigned_upload_expiry
        url = self._presign("put_object", {"Bucket": self._bucket, "Key": path, "ContentType": content_type}, expires_in)
        return url, datetime.now(timezone.utc) + timedelta(seconds=expires_in)

    def presigned_download_url(self, path: str, expires_in: int | None = None) -> tuple[str, datetime]:
        """
        Generate presigned URL for downloading/viewing a document.

        Args:
            path: Object key
            expires_in: URL expiry in seconds (defaults to the configured 300s)

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)
        """
        expires_in = expires_in or self._settings.presigned_download_expiry
        url = self._presign("get_object", {"Bucket": self._bucket, "Key": path}, expires_in)
        return url, datetime.now(timezone.utc) + timedelta(seconds=expires_in)

    def _presign(self, method: str, params: dict, expires_in: int) -> str:
        try:
            return self._s3_client.generate_presigned_url(
                ClientMethod=method,
                Params=params,
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Failed to generate presigned URL: {e}",
                path=params.get("Key"),
                operation=method,
            ) from e

    @_transient_retry
    def _put_object(self, path: str, data: bytes, content_type: str) -> None:
        self._s3_client.put_object(
            Bucket=self._bucket,
            Key=path,
            Body=data,
            ContentType=content_type,
        )

    @_transient_retry
    def _get_object(self, path: str) -> bytes:
        response = self._s3_client.get_object(Bucket=self._bucket, Key=path)
        return response["Body"].read()

    @_transient_retry
    def _delete_object(self, path: str) -> None:
        self._s3_client.delete_object(Bucket=self._bucket, Key=path)
