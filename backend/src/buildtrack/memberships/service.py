"""Membership management: who belongs to a company, with which role.

Memberships are themselves tenant-scoped records (``memberships`` store),
so every change is audited like any other record. Status changes
(invited -> active, active -> suspended) are updates; only remove_member
deletes.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from ..models.base import utcnow
from ..models.membership import Membership
from ..tenancy.base_service import TenantScopedService
from ..tenancy.errors import ConflictError, ForbiddenError, NotFoundError, TenantValidationError
from ..tenancy.record_store import QueryOptions, Record
from ..tenancy.roles import MembershipStatus, Permission, is_valid_permission, parse_role

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"role", "permissions", "status"}


def _value(item):
    return getattr(item, "value", item)


class MembershipService(TenantScopedService):
    """Team management inside one company."""

    service_name = "team"

    def _validate_role(self, role) -> str:
        role = _value(role)
        if parse_role(role) is None:
            raise TenantValidationError(f"Invalid role '{role}'")
        return role

    def _validate_permissions(self, permissions: Optional[Iterable[str]]) -> Optional[List[str]]:
        if permissions is None:
            return None
        values = [_value(permission) for permission in permissions]
        invalid = [permission for permission in values if not is_valid_permission(permission)]
        if invalid:
            raise TenantValidationError(f"Invalid permissions: {', '.join(invalid)}")
        return values

    def list_members(self, user_id: str, tenant_id: str) -> List[Record]:
        self.validate_tenant_access(user_id, tenant_id)
        return self.store("memberships").query(
            self.db, tenant_id, options=QueryOptions(order_by="created_at", order_direction="ASC")
        )

    def get_membership(self, user_id: str, tenant_id: str, membership_id: str) -> Record:
        self.validate_tenant_access(user_id, tenant_id)
        return self.store("memberships").get_or_404(self.db, tenant_id, membership_id)

    def invite_member(
        self,
        user_id: str,
        tenant_id: str,
        member_user_id: str,
        role: str,
        permissions: Optional[Iterable[str]] = None,
        activate: bool = False,
    ) -> Record:
        """Add a user to the company.

        The membership starts as ``invited`` unless ``activate`` is set.

        Raises:
            ConflictError: The user already has a membership in this company
            TenantValidationError: Invalid role or permission
        """
        self.require_permission(user_id, tenant_id, Permission.TEAM_MANAGE)

        role = self._validate_role(role)
        permissions = self._validate_permissions(permissions)

        memberships = self.store("memberships")
        if memberships.count(self.db, tenant_id, {"user_id": member_user_id}):
            raise ConflictError("User is already a member of this company")

        status = MembershipStatus.ACTIVE if activate else MembershipStatus.INVITED
        membership = memberships.create(
            self.db,
            tenant_id,
            {
                "user_id": member_user_id,
                "role": role,
                "permissions": permissions,
                "status": status.value,
                "invited_by": user_id,
                "joined_at": utcnow() if activate else None,
            },
            actor_id=user_id,
        )

        logger.info(
            f"Membership created: {member_user_id} -> {tenant_id} as {role} ({status.value})",
            extra={"company_id": tenant_id, "user_id": user_id},
        )
        return membership

    def accept_invitation(self, user_id: str, tenant_id: str) -> Record:
        """Activate the caller's own pending invitation.

        Raises:
            NotFoundError: No membership for the caller in this company
            ForbiddenError: The membership is suspended
            ConflictError: The membership is already active
        """
        memberships = self.store("memberships")
        found = memberships.query(self.db, tenant_id, {"user_id": user_id})
        if not found:
            raise NotFoundError("No invitation found for this company")

        membership = found[0]
        if membership["status"] == MembershipStatus.SUSPENDED.value:
            raise ForbiddenError("Membership is suspended")
        if membership["status"] == MembershipStatus.ACTIVE.value:
            raise ConflictError("Invitation was already accepted")

        return memberships.update(
            self.db,
            tenant_id,
            membership["id"],
            {"status": MembershipStatus.ACTIVE.value, "joined_at": utcnow()},
            actor_id=user_id,
        )

    def update_membership(
        self,
        user_id: str,
        tenant_id: str,
        membership_id: str,
        updates: Dict[str, Any],
    ) -> Record:
        """Change a member's role, explicit permissions or status.

        Raises:
            TenantValidationError: No fields, unknown fields or invalid values
            NotFoundError: Membership not in this company
        """
        self.require_permission(user_id, tenant_id, Permission.TEAM_MANAGE)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise TenantValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        changes: Dict[str, Any] = {}
        if updates.get("role") is not None:
            changes["role"] = self._validate_role(updates["role"])
        if "permissions" in updates:
            changes["permissions"] = self._validate_permissions(updates["permissions"])
        if updates.get("status") is not None:
            status = _value(updates["status"])
            if status not in {s.value for s in MembershipStatus}:
                raise TenantValidationError(f"Invalid status '{status}'")
            changes["status"] = status

        if not changes:
            raise TenantValidationError("No fields to update")

        memberships = self.store("memberships")
        current = memberships.get_or_404(self.db, tenant_id, membership_id)
        if changes.get("status") == MembershipStatus.ACTIVE.value and current.get("joined_at") is None:
            changes["joined_at"] = utcnow()

        return memberships.update(self.db, tenant_id, membership_id, changes, actor_id=user_id)

    def remove_member(self, user_id: str, tenant_id: str, membership_id: str) -> Record:
        """Hard-delete a membership (the only membership deletion path)."""
        self.require_permission(user_id, tenant_id, Permission.TEAM_MANAGE)
        removed = self.store("memberships").delete(self.db, tenant_id, membership_id, actor_id=user_id)
        logger.info(f"Membership removed: {membership_id}", extra={"company_id": tenant_id, "user_id": user_id})
        return removed

    def get_user_memberships(self, user_id: str) -> List[Record]:
        """Active memberships of one user across all companies.

        Reads across tenants, restricted to the caller's own memberships
        (company picker).
        """
        table = Membership.__table__
        rows = self.db.execute(
            select(table)
            .where(table.c.user_id == user_id, table.c.status == MembershipStatus.ACTIVE.value)
            .order_by(table.c.created_at)
        ).mappings().all()
        return [dict(row) for row in rows]
