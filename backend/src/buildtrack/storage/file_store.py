"""Tenant-namespaced file store.

Key layout (posix, relative to the store root):

    {root}/tenants/{tenant_id}[/projects/{project_id}][/{category}]/{filename}

Rules:
- Every key is normalized and must stay inside ``{root}/tenants/{tenant_id}``
  (whole path segments, so tenant ``acme`` never reaches ``acme2``). Every
  operation validates its key before the backend is touched.
- ``upload`` sanitizes the filename to ``[A-Za-z0-9._-]``; any other
  character becomes ``_``.
- ``download``, ``delete``, ``get_metadata`` and ``generate_presigned_url``
  reject leaf names carrying a path separator (or ``.`` / ``..``), and
  sanitize the rest the same way as upload.
- Missing files and rejected paths raise the same FileNotFoundOrDeniedError.
"""

import logging
import mimetypes
import posixpath
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..observability.metrics import file_store_operations_total, tenant_access_denied_total
from ..tenancy.errors import FileNotFoundOrDeniedError, TenantValidationError
from .ports import FileStoragePort, StorageError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_SAFE_TENANT_ID = re.compile(r"^[A-Za-z0-9._-]+$")

DEFAULT_MIME_TYPE = "application/octet-stream"


def sanitize_filename(filename: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``.

    Example:
        >>> sanitize_filename("../../etc/passwd")
        '.._.._etc_passwd'
    """
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


@dataclass
class FileOptions:
    """Optional location (and upload MIME type) of a tenant file."""
    project_id: Optional[str] = None
    category: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass
class UploadedFile:
    filename: str
    path: str
    url: str
    size_bytes: int
    mime_type: str


@dataclass
class FileMetadata:
    filename: str
    size_bytes: int
    mime_type: Optional[str]
    modified_at: Optional[datetime]


class TenantFileStore:
    """Blob storage namespaced per tenant.

    Args:
        backend: FileStoragePort receiving the bytes
        audit_recorder: AuditRecorder for uploads and deletions
        root: Key prefix under which the ``tenants/`` namespace lives
        url_prefix: Prefix of the relative URL returned by upload
        default_expires_in: Default lifetime of presigned URLs (seconds)

    Example:
        store = TenantFileStore(LocalFileStorageAdapter("uploads"), audit_recorder)
        uploaded = await store.upload("acme", "plan.pdf", data, "user-1",
                                      FileOptions(project_id="p1", category="drawings"))
        uploaded.path  # 'tenants/acme/projects/p1/drawings/plan.pdf'
    """

    def __init__(
        self,
        backend: FileStoragePort,
        audit_recorder=None,
        root: str = "",
        url_prefix: str = "/uploads",
        default_expires_in: int = 3600,
    ):
        self.backend = backend
        self.audit_recorder = audit_recorder
        self.root = root.strip("/") if root and root != "/" else ""
        self.url_prefix = url_prefix.rstrip("/")
        self.default_expires_in = default_expires_in

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def tenant_root(self, tenant_id: str) -> str:
        parts = [self.root, "tenants", tenant_id] if self.root else ["tenants", tenant_id]
        return posixpath.join(*parts)

    def validate_path(self, tenant_id: str, candidate_path: str) -> bool:
        """True iff ``candidate_path`` normalizes to a location inside the tenant's namespace."""
        if not tenant_id or tenant_id in (".", "..") or not _SAFE_TENANT_ID.match(tenant_id):
            return False
        if not candidate_path or "\x00" in candidate_path:
            return False

        normalized = posixpath.normpath(candidate_path.replace("\\", "/"))
        base = self.tenant_root(tenant_id)
        return normalized == base or normalized.startswith(base + "/")

    def _deny(self, operation: str, tenant_id: str, detail: str) -> FileNotFoundOrDeniedError:
        file_store_operations_total.labels(operation=operation, status="denied").inc()
        tenant_access_denied_total.labels(reason="path").inc()
        logger.warning(f"Rejected file path for {operation}: {detail!r}", extra={"company_id": tenant_id})
        return FileNotFoundOrDeniedError()

    def _directory(self, operation: str, tenant_id: str, options: Optional[FileOptions]) -> str:
        parts = [self.tenant_root(tenant_id)]
        if options is not None and options.project_id:
            parts += ["projects", str(options.project_id)]
        if options is not None and options.category:
            parts.append(options.category)

        directory = posixpath.join(*parts)
        if not self.validate_path(tenant_id, directory):
            raise self._deny(operation, tenant_id, directory)
        return posixpath.normpath(directory)

    def _key(self, operation: str, tenant_id: str, filename: str, options: Optional[FileOptions]) -> str:
        if filename in (".", ".."):
            raise self._deny(operation, tenant_id, filename)
        key = posixpath.join(self._directory(operation, tenant_id, options), filename)
        if not self.validate_path(tenant_id, key):
            raise self._deny(operation, tenant_id, key)
        return posixpath.normpath(key)

    def _existing_name(self, operation: str, tenant_id: str, filename: str) -> str:
        """Leaf name for operations on existing files."""
        if (
            not filename
            or filename in (".", "..")
            or "/" in filename
            or "\\" in filename
            or "\x00" in filename
        ):
            raise self._deny(operation, tenant_id, filename)
        return sanitize_filename(filename)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload(
        self,
        tenant_id: str,
        filename: str,
        content: bytes,
        actor_id: Optional[str],
        options: Optional[FileOptions] = None,
    ) -> UploadedFile:
        """Store a file for the tenant and audit the upload.

        Returns:
            UploadedFile with the stored key and its relative URL

        Raises:
            TenantValidationError: Empty filename
            FileNotFoundOrDeniedError: Location escapes the tenant namespace
            StorageError: Backend failure
        """
        safe_name = sanitize_filename(filename or "")
        if not safe_name:
            raise TenantValidationError("Filename is required")

        key = self._key("upload", tenant_id, safe_name, options)
        mime_type = (
            (options.mime_type if options is not None else None)
            or mimetypes.guess_type(safe_name)[0]
            or DEFAULT_MIME_TYPE
        )

        try:
            stored = await self.backend.put(key, content, mime_type)
        except StorageError:
            file_store_operations_total.labels(operation="upload", status="error").inc()
            raise

        file_store_operations_total.labels(operation="upload", status="success").inc()
        logger.info(
            f"Uploaded file {key} ({stored.size_bytes} bytes)",
            extra={"company_id": tenant_id, "user_id": actor_id},
        )

        self._audit("upload", tenant_id, actor_id, safe_name, key, options, size_bytes=stored.size_bytes)

        return UploadedFile(
            filename=safe_name,
            path=key,
            url=f"{self.url_prefix}/{key}",
            size_bytes=stored.size_bytes,
            mime_type=mime_type,
        )

    async def download(self, tenant_id: str, filename: str, options: Optional[FileOptions] = None) -> bytes:
        """Return the file's bytes.

        Raises:
            FileNotFoundOrDeniedError: File missing or path rejected
        """
        key = self._key("download", tenant_id, self._existing_name("download", tenant_id, filename), options)
        try:
            content = await self.backend.get(key)
        except FileNotFoundError:
            file_store_operations_total.labels(operation="download", status="denied").inc()
            raise FileNotFoundOrDeniedError()

        file_store_operations_total.labels(operation="download", status="success").inc()
        return content

    async def delete(
        self,
        tenant_id: str,
        filename: str,
        actor_id: Optional[str],
        options: Optional[FileOptions] = None,
    ) -> None:
        """Delete the file and audit the deletion.

        Raises:
            FileNotFoundOrDeniedError: File missing or path rejected
        """
        safe_name = self._existing_name("delete", tenant_id, filename)
        key = self._key("delete", tenant_id, safe_name, options)

        if not await self.backend.delete(key):
            file_store_operations_total.labels(operation="delete", status="denied").inc()
            raise FileNotFoundOrDeniedError()

        file_store_operations_total.labels(operation="delete", status="success").inc()
        logger.info(f"Deleted file {key}", extra={"company_id": tenant_id, "user_id": actor_id})

        self._audit("delete", tenant_id, actor_id, safe_name, key, options)

    async def list(self, tenant_id: str, options: Optional[FileOptions] = None) -> List[str]:
        """Filenames in the tenant (or project/category) directory; [] if it never existed."""
        return await self.backend.list(self._directory("list", tenant_id, options))

    async def get_metadata(
        self,
        tenant_id: str,
        filename: str,
        options: Optional[FileOptions] = None,
    ) -> Optional[FileMetadata]:
        """Size, MIME type and modification time of a file, or None if it doesn't exist."""
        safe_name = self._existing_name("metadata", tenant_id, filename)
        stored = await self.backend.stat(self._key("metadata", tenant_id, safe_name, options))
        if stored is None:
            return None
        return FileMetadata(
            filename=safe_name,
            size_bytes=stored.size_bytes,
            mime_type=stored.mime_type,
            modified_at=stored.modified_at,
        )

    async def generate_presigned_url(
        self,
        tenant_id: str,
        filename: str,
        expires_in: Optional[int] = None,
        options: Optional[FileOptions] = None,
    ) -> str:
        """A URL usable for ``expires_in`` seconds to download the file.

        Raises:
            TenantValidationError: Non-positive lifetime
            FileNotFoundOrDeniedError: File missing or path rejected
        """
        expires_in = self.default_expires_in if expires_in is None else expires_in
        if expires_in <= 0:
            raise TenantValidationError("expires_in must be a positive number of seconds")

        key = self._key("presign", tenant_id, self._existing_name("presign", tenant_id, filename), options)
        if not await self.backend.exists(key):
            file_store_operations_total.labels(operation="presign", status="denied").inc()
            raise FileNotFoundOrDeniedError()

        file_store_operations_total.labels(operation="presign", status="success").inc()
        return await self.backend.generate_presigned_url(key, expires_in)

    def _audit(
        self,
        action: str,
        tenant_id: str,
        actor_id: Optional[str],
        filename: str,
        key: str,
        options: Optional[FileOptions],
        size_bytes: Optional[int] = None,
    ) -> None:
        if not actor_id or self.audit_recorder is None:
            return

        metadata = {
            "path": key,
            "project_id": options.project_id if options is not None else None,
            "category": options.category if options is not None else None,
        }
        if size_bytes is not None:
            metadata["size_bytes"] = size_bytes

        self.audit_recorder.log(
            company_id=tenant_id,
            actor_id=actor_id,
            action=action,
            resource_type="files",
            resource_id=filename,
            metadata=metadata,
        )
