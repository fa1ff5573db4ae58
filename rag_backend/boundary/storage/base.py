"""
Object storage interface.

Dependencies: typing
System role: Narrow contract the ingestion and pipeline code depend on
"""

from datetime import datetime
from typing import Protocol


class ObjectStorage(Protocol):
    """Blocking object store for raw document bytes, keyed by path."""

    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Write (or overwrite) the object at path."""
        ...

    def get(self, path: str) -> bytes:
        """Read the object at path; StorageError(not_found=True) if absent."""
        ...

    def delete(self, path: str) -> None:
        """Remove the object at path; deleting a missing object is not an error."""
        ...

    def exists(self, path: str) -> bool:
        ...

    def presigned_upload_url(self, path: str, content_type: str) -> tuple[str, datetime]:
        ...

    def presigned_download_url(self, path: str, expires_in: int | None = None) -> tuple[str, datetime]:
        ...
