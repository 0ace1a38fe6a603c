"""Append-only audit log: recorder, query service and schemas."""

from .query_service import AuditLogService
from .schemas import AuditLogFilters, AuditLogListResponse, AuditLogResponse
from .service import AuditRecorder

__all__ = [
    "AuditLogService",
    "AuditLogFilters",
    "AuditLogListResponse",
    "AuditLogResponse",
    "AuditRecorder",
]
