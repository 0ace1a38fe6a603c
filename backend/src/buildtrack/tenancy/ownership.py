"""Membership and resource-hierarchy checks run before domain operations.

The validator is the internal, trusted counterpart of the record stores:
its callers are verified tenant members, so unlike the stores it tells
"does not exist" (NotFoundError) apart from "belongs to another tenant"
(ForbiddenError).

Check order for every domain operation:
    validate_tenant_access / require_permission
    -> validate_resource_tenant / validate_resource_access
    -> store operation (audited)

A failed step raises and nothing after it runs, so no audit entry is ever
written for a denied request.
"""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from ..models.base import DEFAULT_TENANT_COLUMN
from ..observability.metrics import tenant_access_denied_total
from .errors import ForbiddenError, NotFoundError, TenantValidationError
from .record_store import Record, TenantRecordStore
from .registry import STORE_DEFINITIONS, StoreDefinition
from .roles import MembershipStatus, has_permission

logger = logging.getLogger(__name__)


class OwnershipValidator:
    """Composes membership checks with resource ownership checks.

    Args:
        record_stores: Stores built by build_record_stores (must include "memberships")
        definitions: Store definitions providing parent links for hierarchy checks
    """

    def __init__(
        self,
        record_stores: Mapping[str, TenantRecordStore],
        definitions: Optional[Mapping[str, StoreDefinition]] = None,
    ):
        if "memberships" not in record_stores:
            raise ValueError("OwnershipValidator requires a 'memberships' store")
        self.record_stores = record_stores
        self.definitions = STORE_DEFINITIONS if definitions is None else definitions

    def _store(self, table_name: str) -> TenantRecordStore:
        store = self.record_stores.get(table_name)
        if store is None:
            raise TenantValidationError(f"Unknown resource type '{table_name}'")
        return store

    def _deny(self, reason: str, message: str, **context) -> ForbiddenError:
        tenant_access_denied_total.labels(reason=reason).inc()
        logger.warning(f"Tenant access denied ({reason}): {message}", extra=context)
        return ForbiddenError(message)

    def validate_tenant_access(self, db: Session, user_id: str, tenant_id: str) -> Record:
        """Require an active membership of the user in the tenant.

        Returns:
            The active membership record

        Raises:
            ForbiddenError: No membership, or membership not active
        """
        if not user_id or not tenant_id:
            raise self._deny(
                "no_membership",
                "Access denied: user and tenant are required",
                company_id=tenant_id,
                user_id=user_id,
            )

        memberships = self.record_stores["memberships"].query(db, tenant_id, {"user_id": user_id})
        if not memberships:
            raise self._deny(
                "no_membership",
                "Access denied: user is not a member of this company",
                company_id=tenant_id,
                user_id=user_id,
            )

        membership = memberships[0]
        if membership["status"] != MembershipStatus.ACTIVE.value:
            raise self._deny(
                "inactive_membership",
                f"Access denied: membership is {membership['status']}",
                company_id=tenant_id,
                user_id=user_id,
            )

        return membership

    def require_permission(self, db: Session, user_id: str, tenant_id: str, permission: str) -> Record:
        """Validate tenant access, then require a permission from the membership.

        The role's permissions and the membership's explicit permissions are
        both taken into account.

        Returns:
            The active membership record

        Raises:
            ForbiddenError: Access denied or permission missing
        """
        membership = self.validate_tenant_access(db, user_id, tenant_id)

        if not has_permission(membership["role"], permission, membership.get("permissions") or []):
            permission_value = getattr(permission, "value", permission)
            raise self._deny(
                "missing_permission",
                f"Insufficient permissions. Required permission: {permission_value}",
                company_id=tenant_id,
                user_id=user_id,
            )

        return membership

    def validate_resource_tenant(self, db: Session, table_name: str, resource_id: str, tenant_id: str) -> None:
        """Check which tenant owns a resource.

        Raises:
            NotFoundError: The resource does not exist in any tenant
            ForbiddenError: The resource belongs to another tenant
        """
        store = self._store(table_name)
        table = store.table

        owner = db.execute(
            select(table.c[store.tenant_column]).where(table.c[store.id_column] == resource_id)
        ).scalar_one_or_none()

        if owner is None:
            raise NotFoundError(f"{table_name} record not found")

        if owner != tenant_id:
            raise self._deny(
                "foreign_resource",
                f"Access denied: {table_name} record belongs to another company",
                company_id=tenant_id,
                resource_type=table_name,
                resource_id=resource_id,
            )

    def validate_resource_access(
        self,
        db: Session,
        child_table: str,
        child_id: str,
        parent_table: str,
        parent_id: str,
        tenant_id: str,
    ) -> None:
        """Verify child -> parent -> tenant in one joined predicate.

        Example:
            validator.validate_resource_access(db, "tasks", task_id, "projects", project_id, "acme")

        Raises:
            TenantValidationError: The two tables are not linked
            ForbiddenError: The child is not under the parent, or the parent
                (or child) is not owned by the tenant
        """
        child_store = self._store(child_table)
        parent_store = self._store(parent_table)

        definition = self.definitions.get(child_table)
        fk_column = definition.parent_links.get(parent_table) if definition else None
        if fk_column is None:
            raise TenantValidationError(f"{child_table} is not a child of {parent_table}")

        child = child_store.table
        parent = parent_store.table

        stmt = (
            select(child.c[child_store.id_column])
            .select_from(child.join(parent, child.c[fk_column] == parent.c[parent_store.id_column]))
            .where(
                and_(
                    child.c[child_store.id_column] == child_id,
                    parent.c[parent_store.id_column] == parent_id,
                    parent.c[parent_store.tenant_column] == tenant_id,
                    child.c[child_store.tenant_column] == tenant_id,
                )
            )
            .limit(1)
        )

        if db.execute(stmt).first() is None:
            raise self._deny(
                "hierarchy",
                f"Access denied: {child_table} record is not part of this {parent_table} record",
                company_id=tenant_id,
                resource_type=child_table,
                resource_id=child_id,
            )

    def validate_record_tenant(
        self,
        record: Mapping[str, Any],
        tenant_id: str,
        record_type: str = "record",
        tenant_column: str = DEFAULT_TENANT_COLUMN,
    ) -> None:
        """Reject a caller-built payload whose declared tenant is not the context tenant.

        Raises:
            TenantValidationError: Tenant column missing or different
        """
        declared = record.get(tenant_column)
        if declared != tenant_id:
            logger.warning(
                f"Rejected {record_type} payload declaring tenant '{declared}'",
                extra={"company_id": tenant_id, "resource_type": record_type},
            )
            raise TenantValidationError(f"{record_type} does not belong to the current company")
