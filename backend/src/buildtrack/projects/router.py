"""Project management API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_tenant_context, service_dependency
from ..tenancy.context import TenantContext
from .schemas import ProjectCreate, ProjectResponse, ProjectUpdate
from .service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])

get_project_service = service_dependency(ProjectService)


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by project status"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum projects to return"),
    offset: Optional[int] = Query(None, ge=0, description="Projects to skip (requires limit)"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: ProjectService = Depends(get_project_service),
):
    """List the company's projects, newest first."""
    return service.list_projects(ctx.user_id, ctx.company_id, status_filter, limit, offset)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: ProjectService = Depends(get_project_service),
):
    return service.create_project(ctx.user_id, ctx.company_id, project_data.model_dump())


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: ProjectService = Depends(get_project_service),
):
    return service.get_project(ctx.user_id, ctx.company_id, project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: ProjectService = Depends(get_project_service),
):
    """Update a project. Only fields present in the request body are changed."""
    return service.update_project(
        ctx.user_id, ctx.company_id, project_id, project_data.model_dump(exclude_unset=True)
    )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: ProjectService = Depends(get_project_service),
):
    """Delete a project.

    Raises:
        409: Tasks still belong to the project
    """
    service.delete_project(ctx.user_id, ctx.company_id, project_id)
