"""Local disk storage adapter.

Stores objects as files under a base directory. Presigned URLs degrade to
``{url_prefix}/{key}?expires={epoch_ms}``; the serving layer is expected to
honour the timestamp.
"""

import logging
import mimetypes
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .ports import FileStoragePort, StorageError, StoredObject

logger = logging.getLogger(__name__)


class LocalFileStorageAdapter(FileStoragePort):
    """FileStoragePort backed by the local file system.

    Example:
        backend = LocalFileStorageAdapter(base_dir="uploads", url_prefix="/uploads")
        await backend.put("tenants/acme/plan.pdf", data, "application/pdf")
    """

    def __init__(self, base_dir, url_prefix: str = "/uploads"):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        logger.info(f"Initialized local storage adapter: base_dir={self.base_dir}")

    def _path(self, key: str) -> Path:
        return self.base_dir / key

    async def put(self, key: str, content: bytes, mime_type: str) -> StoredObject:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Local write failed: key={key}, error={e}")
            raise StorageError(f"Failed to store file: {e}")

        logger.info(f"Stored file: key={key}, size={len(content)}, mime_type={mime_type}")
        return StoredObject(key=key, size_bytes=len(content), mime_type=mime_type)

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {key}")
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error(f"Local read failed: key={key}, error={e}")
            raise StorageError(f"Failed to read file: {e}")

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            logger.info(f"File not found for deletion: key={key}")
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Local delete failed: key={key}, error={e}")
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted file: key={key}")
        return True

    async def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    async def stat(self, key: str) -> Optional[StoredObject]:
        path = self._path(key)
        if not path.is_file():
            return None
        info = path.stat()
        return StoredObject(
            key=key,
            size_bytes=info.st_size,
            mime_type=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
            modified_at=datetime.fromtimestamp(info.st_mtime, tz=timezone.utc),
        )

    async def list(self, prefix: str) -> List[str]:
        directory = self._path(prefix)
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())

    async def generate_presigned_url(self, key: str, expires_in_seconds: int = 3600) -> str:
        expires_at_ms = int((time.time() + expires_in_seconds) * 1000)
        return f"{self.url_prefix}/{key}?expires={expires_at_ms}"
