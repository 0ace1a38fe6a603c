"""Pydantic schemas for audit log queries.

Audit logs are read-only through the API (no create/update/delete).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AuditLogFilters(BaseModel):
    """Filters accepted by AuditRecorder queries.

    ``action`` matches as a substring; every other filter matches exactly.
    """
    actor_id: Optional[str] = Field(None, description="User who performed the action")
    company_id: Optional[str] = Field(None, description="Company (tenant) ID")
    action: Optional[str] = Field(None, description="Substring of the action, e.g. 'delete' or 'tasks.'")
    resource_type: Optional[str] = Field(None, description="Resource type, e.g. 'tasks' or 'files'")
    resource_id: Optional[str] = Field(None, description="ID of the affected resource")
    start_date: Optional[datetime] = Field(None, description="Minimum created_at (inclusive)")
    end_date: Optional[datetime] = Field(None, description="Maximum created_at (inclusive)")
    limit: int = Field(100, ge=1, le=10_000, description="Maximum entries to return")
    offset: int = Field(0, ge=0, description="Entries to skip")


class AuditLogResponse(BaseModel):
    """Response schema for audit log entries."""
    id: str = Field(..., description="Audit log entry unique identifier")
    company_id: str = Field(..., description="Company ID")
    actor_id: Optional[str] = Field(None, description="User who performed the action")
    action: str = Field(..., description="Action (create, update, delete, files.upload, ...)")
    resource_type: Optional[str] = Field(None, description="Type of resource affected")
    resource_id: Optional[str] = Field(None, description="ID of affected resource")
    metadata: Optional[dict] = Field(None, description="Additional context as JSON")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent header")
    created_at: datetime = Field(..., description="Event timestamp")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "company_id": "acme",
                "actor_id": "user-1",
                "action": "create",
                "resource_type": "tasks",
                "resource_id": "abc12345-6789-0abc-def0-123456789012",
                "metadata": {"data": {"title": "Pour slab"}},
                "ip_address": "192.168.1.100",
                "user_agent": "Mozilla/5.0...",
                "created_at": "2025-01-04T12:00:00Z"
            }
        }


class AuditLogListResponse(BaseModel):
    """Audit log page with pagination metadata."""
    entries: list[AuditLogResponse] = Field(..., description="List of audit log entries")
    total: int = Field(..., description="Total number of entries matching filters")
    limit: int = Field(..., description="Maximum entries per page")
    offset: int = Field(..., description="Entries skipped")
