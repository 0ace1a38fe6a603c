"""Audit log query endpoints (``audit.read`` permission).

All endpoints in this router are read-only. Audit logs are immutable and
cannot be created, updated, or deleted through the API. Results are always
limited to the caller's company.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ..config import settings
from ..dependencies import get_tenant_context, service_dependency
from ..tenancy.context import TenantContext
from .query_service import AuditLogService
from .schemas import AuditLogFilters, AuditLogListResponse

router = APIRouter(prefix="/audit", tags=["Audit Logs"])

get_audit_log_service = service_dependency(AuditLogService)


def get_audit_filters(
    actor_id: Optional[str] = Query(None, description="Filter by acting user"),
    action: Optional[str] = Query(None, description="Filter by action substring (e.g. 'delete')"),
    resource_type: Optional[str] = Query(None, description="Filter by resource type (e.g. 'tasks')"),
    resource_id: Optional[str] = Query(None, description="Filter by resource ID"),
    start_date: Optional[datetime] = Query(None, description="Minimum created_at timestamp (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum created_at timestamp (ISO 8601)"),
    limit: int = Query(settings.AUDIT_DEFAULT_LIMIT, ge=1, le=10_000, description="Entries per page"),
    offset: int = Query(0, ge=0, description="Entries to skip"),
) -> AuditLogFilters:
    return AuditLogFilters(
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="Query audit logs",
    description="Query the company's audit log with filtering and pagination, newest first.",
)
def query_audit_logs(
    filters: AuditLogFilters = Depends(get_audit_filters),
    ctx: TenantContext = Depends(get_tenant_context),
    service: AuditLogService = Depends(get_audit_log_service),
) -> AuditLogListResponse:
    """Query audit logs with filtering and pagination.

    Example:
        GET /audit?action=delete&resource_type=tasks&limit=50
    """
    entries, total = service.list_logs(ctx.user_id, ctx.company_id, filters)
    return AuditLogListResponse(entries=entries, total=total, limit=filters.limit, offset=filters.offset)


@router.get("/export", summary="Export audit logs as CSV")
def export_audit_logs(
    filters: AuditLogFilters = Depends(get_audit_filters),
    ctx: TenantContext = Depends(get_tenant_context),
    service: AuditLogService = Depends(get_audit_log_service),
):
    """CSV snapshot of the company's audit log (bounded row count)."""
    content = service.export_logs(ctx.user_id, ctx.company_id, filters)
    filename = f"audit-log-{ctx.company_id}-{datetime.utcnow():%Y%m%d%H%M%S}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
