"""Audit recorder: append-only log of every mutating action.

Entries are written in their own short session, after the caller's write
has committed, so an audit failure can never roll back or fail the primary
operation. Failures are logged and counted, never raised.

Reads (query, count, CSV export) and the retention cleanup are the only
other operations; entries are never updated.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy import delete, func, select

from ..config import settings
from ..database import SessionFactory, session_scope
from ..models.audit_log import AuditLog
from ..observability.metrics import audit_write_failures_total
from .schemas import AuditLogFilters

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Timestamp", "User ID", "Company ID", "Action", "Resource", "Resource ID", "IP Address"]


class AuditRecorder:
    """Persists and queries audit log entries.

    Args:
        session_factory: Factory for the recorder's own sessions
            (default: database.SessionLocal)
        export_max_rows: Row cap for export_audit_logs
            (default: settings.AUDIT_EXPORT_MAX_ROWS)
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        export_max_rows: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.export_max_rows = export_max_rows or settings.AUDIT_EXPORT_MAX_ROWS

    def log(
        self,
        *,
        company_id: str,
        action: str,
        actor_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Persist one audit entry. Never raises.

        Args:
            company_id: Tenant the action happened in
            action: Action name (e.g. "create", "files.upload")
            actor_id: User who performed the action
            resource_type: Table or resource kind (e.g. "tasks", "files")
            resource_id: ID of the affected resource
            metadata: JSON-serializable context (never raw file content)
            ip_address: Client IP address
            user_agent: Client User-Agent header

        Example:
            recorder.log(
                company_id="acme",
                actor_id="user-1",
                action="delete",
                resource_type="tasks",
                resource_id=task_id,
                metadata={"deleted": snapshot},
            )
        """
        try:
            with session_scope(self.session_factory) as session:
                session.add(
                    AuditLog(
                        company_id=company_id,
                        actor_id=actor_id,
                        action=action,
                        resource_type=resource_type,
                        resource_id=resource_id,
                        metadata_json=to_jsonable_python(metadata, fallback=str) if metadata is not None else None,
                        ip_address=ip_address,
                        user_agent=user_agent,
                    )
                )
        except Exception as e:
            audit_write_failures_total.inc()
            logger.error(
                f"Failed to write audit log entry '{action}': {e}",
                extra={
                    "company_id": company_id,
                    "user_id": actor_id,
                    "resource_type": resource_type,
                    "resource_id": resource_id,
                },
            )

    @staticmethod
    def _conditions(filters: AuditLogFilters) -> list:
        conditions = []
        if filters.actor_id:
            conditions.append(AuditLog.actor_id == filters.actor_id)
        if filters.company_id:
            conditions.append(AuditLog.company_id == filters.company_id)
        if filters.action:
            conditions.append(AuditLog.action.contains(filters.action, autoescape=True))
        if filters.resource_type:
            conditions.append(AuditLog.resource_type == filters.resource_type)
        if filters.resource_id:
            conditions.append(AuditLog.resource_id == filters.resource_id)
        if filters.start_date:
            conditions.append(AuditLog.created_at >= filters.start_date)
        if filters.end_date:
            conditions.append(AuditLog.created_at <= filters.end_date)
        return conditions

    def get_audit_logs(self, filters: AuditLogFilters) -> List[Dict[str, Any]]:
        """Return matching entries, newest first, paginated by limit/offset."""
        stmt = (
            select(AuditLog)
            .where(*self._conditions(filters))
            .order_by(AuditLog.created_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        with session_scope(self.session_factory) as session:
            return [entry.to_dict() for entry in session.execute(stmt).scalars().all()]

    def get_audit_log_count(self, filters: AuditLogFilters) -> int:
        """Count entries matching the filters (pagination ignored)."""
        stmt = select(func.count()).select_from(AuditLog).where(*self._conditions(filters))
        with session_scope(self.session_factory) as session:
            return session.execute(stmt).scalar_one()

    def export_audit_logs(self, filters: AuditLogFilters) -> str:
        """Render matching entries as CSV (at most export_max_rows rows).

        Columns: Timestamp, User ID, Company ID, Action, Resource,
        Resource ID, IP Address. Every cell is quoted.
        """
        bounded = filters.model_copy(update={"limit": self.export_max_rows, "offset": 0})
        entries = self.get_audit_logs(bounded)

        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EXPORT_COLUMNS)
        for entry in entries:
            writer.writerow([
                entry["created_at"] or "",
                entry["actor_id"] or "",
                entry["company_id"],
                entry["action"],
                entry["resource_type"] or "",
                entry["resource_id"] or "",
                entry["ip_address"] or "",
            ])

        logger.info(f"Exported {len(entries)} audit log entries", extra={"company_id": filters.company_id})
        return output.getvalue()

    def delete_old_logs(self, cutoff: datetime) -> int:
        """Delete entries created before ``cutoff``.

        This is the only erasure path for audit data.

        Returns:
            Number of entries deleted
        """
        with session_scope(self.session_factory) as session:
            result = session.execute(delete(AuditLog).where(AuditLog.created_at < cutoff))
            deleted = result.rowcount or 0

        logger.info(f"Deleted {deleted} audit log entries older than {cutoff.isoformat()}")
        return deleted
