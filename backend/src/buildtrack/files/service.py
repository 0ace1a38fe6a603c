"""Project-scoped file operations.

The project is checked against the tenant before the file store is touched;
the file store then enforces its own path containment.
"""

from typing import List, Optional

from ..storage.file_store import FileMetadata, FileOptions, TenantFileStore, UploadedFile
from ..tenancy.base_service import TenantScopedService
from ..tenancy.roles import Permission


class ProjectFileService(TenantScopedService):
    """Files attached to one project, optionally grouped by category."""

    service_name = "files"

    def __init__(self, *args, file_store: TenantFileStore, **kwargs):
        super().__init__(*args, **kwargs)
        self.file_store = file_store

    def _authorize(self, user_id: str, tenant_id: str, project_id: str, permission: Permission) -> None:
        self.require_permission(user_id, tenant_id, permission)
        self.validate_resource_tenant("projects", project_id, tenant_id)

    async def upload_file(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        filename: str,
        content: bytes,
        category: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> UploadedFile:
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_WRITE)
        return await self.file_store.upload(
            tenant_id,
            filename,
            content,
            user_id,
            FileOptions(project_id=project_id, category=category, mime_type=mime_type),
        )

    async def list_files(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        category: Optional[str] = None,
    ) -> List[str]:
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_READ)
        return await self.file_store.list(tenant_id, FileOptions(project_id=project_id, category=category))

    async def download_file(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        filename: str,
        category: Optional[str] = None,
    ) -> bytes:
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_READ)
        return await self.file_store.download(
            tenant_id, filename, FileOptions(project_id=project_id, category=category)
        )

    async def get_file_metadata(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        filename: str,
        category: Optional[str] = None,
    ) -> Optional[FileMetadata]:
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_READ)
        return await self.file_store.get_metadata(
            tenant_id, filename, FileOptions(project_id=project_id, category=category)
        )

    async def delete_file(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        filename: str,
        category: Optional[str] = None,
    ) -> None:
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_WRITE)
        await self.file_store.delete(
            tenant_id, filename, user_id, FileOptions(project_id=project_id, category=category)
        )

    async def get_download_url(
        self,
        user_id: str,
        tenant_id: str,
        project_id: str,
        filename: str,
        expires_in: Optional[int] = None,
        category: Optional[str] = None,
    ) -> str:
        """Issue a time-limited download URL; issuing it is audited."""
        self._authorize(user_id, tenant_id, project_id, Permission.FILES_READ)
        url = await self.file_store.generate_presigned_url(
            tenant_id, filename, expires_in, FileOptions(project_id=project_id, category=category)
        )
        self.audit_action(
            "url_issued",
            user_id,
            tenant_id,
            resource_type="files",
            resource_id=filename,
            metadata={"project_id": project_id, "category": category, "expires_in": expires_in},
        )
        return url
