"""Storage configuration for tenant file backends.

Supports local disk (development, tests) and S3-compatible object storage
(MinIO in development, AWS S3 in production) behind the same port.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from .local_adapter import LocalFileStorageAdapter
from .ports import FileStoragePort
from .s3_adapter import S3FileStorageAdapter

STORAGE_BACKENDS = ("local", "s3")


@dataclass
class StorageConfig:
    """Configuration for the tenant file backend.

    Attributes:
        backend: "local" or "s3"
        local_root: Base directory for the local backend
        url_prefix: Public URL prefix for stored files
        endpoint_url: S3 endpoint URL (None for AWS S3 default endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name
        region: AWS region (default: 'us-east-1')
        presigned_url_expires_seconds: Default lifetime of download URLs
    """
    backend: str = "local"
    local_root: str = "uploads"
    url_prefix: str = "/uploads"
    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    bucket_name: Optional[str] = None
    region: str = "us-east-1"
    presigned_url_expires_seconds: int = 3600


def load_storage_config(settings: Settings) -> StorageConfig:
    """Build the storage configuration from application settings."""
    return StorageConfig(
        backend=settings.STORAGE_BACKEND.lower(),
        local_root=settings.FILE_STORAGE_ROOT,
        url_prefix=settings.FILE_URL_PREFIX,
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        presigned_url_expires_seconds=settings.PRESIGNED_URL_EXPIRES_SECONDS,
    )


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.backend not in STORAGE_BACKENDS:
        raise ValueError(f"Unknown storage backend '{config.backend}' (expected one of {STORAGE_BACKENDS})")

    if config.presigned_url_expires_seconds <= 0:
        raise ValueError("presigned_url_expires_seconds must be positive")

    if config.backend == "local":
        if not config.local_root:
            raise ValueError("Storage local_root is required for the local backend")
        return

    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url:
        # MinIO configuration
        if not config.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint_url: {config.endpoint_url}. "
                "Must start with http:// or https://"
            )
    elif not config.region:
        raise ValueError("AWS region is required when using S3 without an endpoint URL")


def build_file_backend(config: StorageConfig) -> FileStoragePort:
    """Validate the configuration and instantiate the matching backend."""
    validate_storage_config(config)

    if config.backend == "s3":
        return S3FileStorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    return LocalFileStorageAdapter(base_dir=config.local_root, url_prefix=config.url_prefix)
