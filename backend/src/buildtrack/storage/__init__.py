"""Tenant file storage: path rules, backends and configuration."""

from .file_store import FileMetadata, FileOptions, TenantFileStore, UploadedFile, sanitize_filename
from .local_adapter import LocalFileStorageAdapter
from .ports import FileStoragePort, StorageError, StoredObject
from .s3_adapter import S3FileStorageAdapter
from .storage_config import StorageConfig, build_file_backend, load_storage_config, validate_storage_config

__all__ = [
    "FileMetadata",
    "FileOptions",
    "TenantFileStore",
    "UploadedFile",
    "sanitize_filename",
    "LocalFileStorageAdapter",
    "FileStoragePort",
    "StorageError",
    "StoredObject",
    "S3FileStorageAdapter",
    "StorageConfig",
    "build_file_backend",
    "load_storage_config",
    "validate_storage_config",
]
