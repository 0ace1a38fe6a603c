"""Project file API endpoints

Upload, list, download, inspect and delete files attached to a project, and
issue time-limited download URLs. Files live under the caller's company
namespace; names are sanitized on upload.
"""

import mimetypes
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

from ..config import settings
from ..dependencies import get_project_file_service, get_tenant_context
from ..storage.file_store import sanitize_filename
from ..tenancy.context import TenantContext
from ..tenancy.errors import FileNotFoundOrDeniedError
from .schemas import DownloadUrlResponse, FileListResponse, FileMetadataResponse, FileUploadResponse
from .service import ProjectFileService

router = APIRouter(prefix="/projects/{project_id}/files", tags=["files"])

MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB


@router.post("", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    project_id: str,
    file: Annotated[UploadFile, File(...)],
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    category: Annotated[Optional[str], Form()] = None,
):
    """Upload one file to the project (multipart/form-data).

    Raises:
        413: File larger than 100MB
    """
    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum size of {MAX_FILE_SIZE} bytes",
        )

    return await service.upload_file(
        ctx.user_id,
        ctx.company_id,
        project_id,
        file.filename or "",
        content,
        category=category,
        mime_type=file.content_type,
    )


@router.get("", response_model=FileListResponse)
async def list_files(
    project_id: str,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    category: Optional[str] = Query(None),
):
    files = await service.list_files(ctx.user_id, ctx.company_id, project_id, category=category)
    return FileListResponse(files=files)


@router.get("/{filename}")
async def download_file(
    project_id: str,
    filename: str,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    category: Optional[str] = Query(None),
):
    content = await service.download_file(ctx.user_id, ctx.company_id, project_id, filename, category=category)
    # Header values must be latin-1; the stored name is always plain ASCII
    stored_name = sanitize_filename(filename)
    media_type = mimetypes.guess_type(stored_name)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{stored_name}"'},
    )


@router.get("/{filename}/metadata", response_model=FileMetadataResponse)
async def get_file_metadata(
    project_id: str,
    filename: str,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    category: Optional[str] = Query(None),
):
    metadata = await service.get_file_metadata(ctx.user_id, ctx.company_id, project_id, filename, category=category)
    if metadata is None:
        raise FileNotFoundOrDeniedError()
    return metadata


@router.get("/{filename}/url", response_model=DownloadUrlResponse)
async def get_download_url(
    project_id: str,
    filename: str,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    expires_in: Optional[int] = Query(None, ge=1, le=7 * 24 * 3600, description="URL lifetime in seconds"),
    category: Optional[str] = Query(None),
):
    expires_in = expires_in or settings.PRESIGNED_URL_EXPIRES_SECONDS
    url = await service.get_download_url(
        ctx.user_id, ctx.company_id, project_id, filename, expires_in=expires_in, category=category
    )
    return DownloadUrlResponse(url=url, expires_in=expires_in)


@router.delete("/{filename}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    project_id: str,
    filename: str,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[ProjectFileService, Depends(get_project_file_service)],
    category: Optional[str] = Query(None),
):
    await service.delete_file(ctx.user_id, ctx.company_id, project_id, filename, category=category)
