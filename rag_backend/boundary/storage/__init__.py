"""
Object storage boundary.

Exports:
  - ObjectStorage: Storage protocol consumed by services and the pipeline
  - S3ObjectStorage: boto3 implementation
"""

from rag_backend.boundary.storage.base import ObjectStorage
from rag_backend.boundary.storage.s3_storage import S3ObjectStorage

__all__ = ["ObjectStorage", "S3ObjectStorage"]
