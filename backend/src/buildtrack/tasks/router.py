"""Task management API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_tenant_context, service_dependency
from ..tenancy.context import TenantContext
from .schemas import TaskCreate, TaskResponse, TaskUpdate
from .service import TaskService

router = APIRouter(tags=["tasks"])

get_task_service = service_dependency(TaskService)


# ============================================================================
# Project-scoped endpoints
# ============================================================================

@router.get("/projects/{project_id}/tasks", response_model=List[TaskResponse])
def list_project_tasks(
    project_id: str,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by task status"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    return service.list_tasks(ctx.user_id, ctx.company_id, project_id=project_id, status=status_filter)


@router.post("/projects/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_project_task(
    project_id: str,
    task_data: TaskCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    data = task_data.model_dump()
    data["project_id"] = project_id
    return service.create_task(ctx.user_id, ctx.company_id, data)


@router.get("/projects/{project_id}/tasks/{task_id}", response_model=TaskResponse)
def get_project_task(
    project_id: str,
    task_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    """Fetch a task through its project; 403 if the task is not part of it."""
    return service.get_project_task(ctx.user_id, ctx.company_id, project_id, task_id)


# ============================================================================
# Task endpoints
# ============================================================================

@router.get("/tasks", response_model=List[TaskResponse])
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by task status"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    return service.list_tasks(ctx.user_id, ctx.company_id, status=status_filter)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    return service.get_task(ctx.user_id, ctx.company_id, task_id)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    return service.update_task(ctx.user_id, ctx.company_id, task_id, task_data.model_dump(exclude_unset=True))


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TaskService = Depends(get_task_service),
):
    service.delete_task(ctx.user_id, ctx.company_id, task_id)
