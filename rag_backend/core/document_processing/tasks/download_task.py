"""
Document download task.

Reads the raw bytes of a stored document for the extraction stage.

Dependencies: asyncio, rag_backend.boundary.storage
System role: First stage of document processing pipeline
"""

import asyncio
import logging

from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class DownloadTask:
    """Fetch document bytes from object storage."""

    def __init__(self, storage: ObjectStorage) -> None:
        self._storage = storage

    async def download(self, storage_path: str | None) -> bytes:
        """
        Download a stored document.

        Args:
            storage_path: Object key recorded on the document row

        Returns:
            bytes: Raw document content

        Raises:
            StorageError: Missing path, missing object or transport failure
        """
        if not storage_path:
            raise StorageError("Document has no storage path", operation="get")

        data = await asyncio.to_thread(self._storage.get, storage_path)
        logger.info(
            f"{__name__}:download - Downloaded",
            extra={"path": storage_path, "size_bytes": len(data)},
        )
        return data
