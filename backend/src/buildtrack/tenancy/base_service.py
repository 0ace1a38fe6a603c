"""Base class for tenant-scoped domain services."""

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from ..models.base import DEFAULT_TENANT_COLUMN
from ..observability.metrics import audit_write_failures_total
from .ownership import OwnershipValidator
from .record_store import Record, TenantRecordStore

logger = logging.getLogger(__name__)


class TenantScopedService:
    """Shared plumbing for services that operate inside one tenant.

    Every public method of a subclass takes ``(user_id, tenant_id, ...)`` and
    must start with validate_tenant_access or require_permission.

    Args:
        db: Request session
        record_stores: Stores built at start-up
        validator: OwnershipValidator over the same stores
        audit_recorder: AuditRecorder for actions that do not go through a store
        ip_address: Client IP recorded on service-level audit entries
        user_agent: Client User-Agent recorded on service-level audit entries
    """

    service_name = "service"

    def __init__(
        self,
        db: Session,
        record_stores: Mapping[str, TenantRecordStore],
        validator: OwnershipValidator,
        audit_recorder=None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        self.db = db
        self.record_stores = record_stores
        self.validator = validator
        self.audit_recorder = audit_recorder
        self.ip_address = ip_address
        self.user_agent = user_agent

    def store(self, name: str) -> TenantRecordStore:
        return self.record_stores[name]

    def validate_tenant_access(self, user_id: str, tenant_id: str) -> Record:
        return self.validator.validate_tenant_access(self.db, user_id, tenant_id)

    def require_permission(self, user_id: str, tenant_id: str, permission: str) -> Record:
        return self.validator.require_permission(self.db, user_id, tenant_id, permission)

    def validate_resource_tenant(self, table_name: str, resource_id: str, tenant_id: str) -> None:
        self.validator.validate_resource_tenant(self.db, table_name, resource_id, tenant_id)

    def validate_resource_access(
        self,
        child_table: str,
        child_id: str,
        parent_table: str,
        parent_id: str,
        tenant_id: str,
    ) -> None:
        self.validator.validate_resource_access(
            self.db, child_table, child_id, parent_table, parent_id, tenant_id
        )

    def validate_record_tenant(
        self,
        record: Mapping[str, Any],
        tenant_id: str,
        record_type: str = "record",
        tenant_column: str = DEFAULT_TENANT_COLUMN,
    ) -> None:
        self.validator.validate_record_tenant(record, tenant_id, record_type, tenant_column)

    def audit_action(
        self,
        action: str,
        user_id: str,
        tenant_id: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a service-level action as ``<service_name>.<action>``.

        Failures are logged and never propagated.
        """
        if self.audit_recorder is None:
            return
        try:
            self.audit_recorder.log(
                company_id=tenant_id,
                actor_id=user_id,
                action=f"{self.service_name}.{action}",
                resource_type=resource_type,
                resource_id=resource_id,
                metadata=metadata,
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        except Exception as e:
            audit_write_failures_total.inc()
            logger.error(
                f"Failed to audit {self.service_name}.{action}: {e}",
                extra={"company_id": tenant_id, "user_id": user_id},
            )
