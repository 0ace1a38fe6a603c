"""Tenant-scoped read access to the audit log."""

from typing import Any, Dict, List, Tuple

from ..tenancy.base_service import TenantScopedService
from ..tenancy.roles import Permission
from .schemas import AuditLogFilters


class AuditLogService(TenantScopedService):
    """Audit queries for members holding ``audit.read``.

    The company filter is always replaced by the caller's tenant, so a
    member can never read another company's entries.
    """

    service_name = "audit"

    def _scoped(self, tenant_id: str, filters: AuditLogFilters) -> AuditLogFilters:
        return filters.model_copy(update={"company_id": tenant_id})

    def list_logs(
        self,
        user_id: str,
        tenant_id: str,
        filters: AuditLogFilters,
    ) -> Tuple[List[Dict[str, Any]], int]:
        self.require_permission(user_id, tenant_id, Permission.AUDIT_READ)
        scoped = self._scoped(tenant_id, filters)
        return self.audit_recorder.get_audit_logs(scoped), self.audit_recorder.get_audit_log_count(scoped)

    def export_logs(self, user_id: str, tenant_id: str, filters: AuditLogFilters) -> str:
        """CSV export of the tenant's entries; the export itself is audited."""
        self.require_permission(user_id, tenant_id, Permission.AUDIT_READ)
        scoped = self._scoped(tenant_id, filters)
        content = self.audit_recorder.export_audit_logs(scoped)

        self.audit_action(
            "export",
            user_id,
            tenant_id,
            resource_type="audit_log",
            metadata={"filters": scoped.model_dump(mode="json", exclude_none=True)},
        )
        return content
