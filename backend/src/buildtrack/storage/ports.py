"""File Storage Port - interface for the byte store behind TenantFileStore.

Backends only move bytes under opaque posix keys. They know nothing about
tenants; key construction and path validation happen in TenantFileStore
before a backend is called.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


class StorageError(Exception):
    """Backend failure (I/O error, S3 error). Maps to HTTP 500."""
    pass


@dataclass
class StoredObject:
    """Metadata for one stored object.

    Attributes:
        key: Posix key of the object (e.g. 'tenants/acme/projects/p1/plan.pdf')
        size_bytes: Object size in bytes
        mime_type: MIME type, if known
        modified_at: Last modification time, if known
    """
    key: str
    size_bytes: int
    mime_type: Optional[str] = None
    modified_at: Optional[datetime] = None


class FileStoragePort(ABC):
    """Port interface for tenant file bytes.

    Implementations:
    - LocalFileStorageAdapter: local disk, time-stamped URLs
    - S3FileStorageAdapter: S3/MinIO via boto3, signed URLs
    """

    @abstractmethod
    async def put(self, key: str, content: bytes, mime_type: str) -> StoredObject:
        """Write an object, creating parent "directories" as needed (last writer wins).

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Read an object's bytes.

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object.

        Returns:
            bool: True if deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def stat(self, key: str) -> Optional[StoredObject]:
        """Return object metadata, or None if the object doesn't exist."""
        pass

    @abstractmethod
    async def list(self, prefix: str) -> List[str]:
        """List the names of objects directly under ``prefix``.

        Returns an empty list if nothing was ever stored under the prefix.
        """
        pass

    @abstractmethod
    async def generate_presigned_url(self, key: str, expires_in_seconds: int = 3600) -> str:
        """Generate a URL usable for ``expires_in_seconds`` to download the object.

        Raises:
            StorageError: If URL generation fails
        """
        pass
