"""
Object storage configuration.

Settings for the raw document bucket and presigned URL generation.

Dependencies: pydantic_settings
System role: Document storage bucket configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for S3-compatible document storage."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="project-files",
        description="Bucket for raw document storage",
    )
    region: str = Field(
        default="eu-central-1",
        description="Region of the storage bucket",
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint (MinIO, Supabase storage, localstack)",
    )
    global_partition: str = Field(
        default="global",
        description="Path prefix for documents that belong to no scope",
    )
    presigned_upload_expiry: int = Field(
        default=3600,
        description="Presigned upload URL expiry in seconds",
    )
    presigned_download_expiry: int = Field(
        default=300,
        description="Presigned download URL expiry in seconds",
    )
