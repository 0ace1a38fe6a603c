"""Membership roles and permission hierarchy for BuildTrack.

Role Hierarchy (descending permissions):
- ADMIN: Full tenant access, team management, audit log access
- PROJECT_MANAGER: Project and task management, file management
- FIELD_WORKER: Task updates and file uploads on site
- VIEWER: Read-only access

Permission Matrix:
┌──────────────────┬───────┬─────────────────┬──────────────┬────────┐
│ Permission       │ ADMIN │ PROJECT_MANAGER │ FIELD_WORKER │ VIEWER │
├──────────────────┼───────┼─────────────────┼──────────────┼────────┤
│ projects.read    │   ✓   │        ✓        │      ✓       │   ✓    │
│ tasks.read       │   ✓   │        ✓        │      ✓       │   ✓    │
│ files.read       │   ✓   │        ✓        │      ✓       │   ✓    │
│ tasks.write      │   ✓   │        ✓        │      ✓       │        │
│ files.write      │   ✓   │        ✓        │      ✓       │        │
│ projects.write   │   ✓   │        ✓        │              │        │
│ tasks.delete     │   ✓   │        ✓        │              │        │
│ projects.delete  │   ✓   │                 │              │        │
│ team.manage      │   ✓   │                 │              │        │
│ audit.read       │   ✓   │                 │              │        │
└──────────────────┴───────┴─────────────────┴──────────────┴────────┘

Memberships may carry explicit permissions that are granted on top of the
role's own set.
"""

from enum import Enum
from typing import Iterable, Optional, Set


class MemberRole(str, Enum):
    """Membership roles. Values are stored as TEXT and must match exactly."""
    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    FIELD_WORKER = "FIELD_WORKER"
    VIEWER = "VIEWER"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INVITED = "invited"


class Permission(str, Enum):
    PROJECTS_READ = "projects.read"
    PROJECTS_WRITE = "projects.write"
    PROJECTS_DELETE = "projects.delete"
    TASKS_READ = "tasks.read"
    TASKS_WRITE = "tasks.write"
    TASKS_DELETE = "tasks.delete"
    FILES_READ = "files.read"
    FILES_WRITE = "files.write"
    TEAM_MANAGE = "team.manage"
    AUDIT_READ = "audit.read"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    MemberRole.ADMIN: {MemberRole.ADMIN, MemberRole.PROJECT_MANAGER, MemberRole.FIELD_WORKER, MemberRole.VIEWER},
    MemberRole.PROJECT_MANAGER: {MemberRole.PROJECT_MANAGER, MemberRole.FIELD_WORKER, MemberRole.VIEWER},
    MemberRole.FIELD_WORKER: {MemberRole.FIELD_WORKER, MemberRole.VIEWER},
    MemberRole.VIEWER: {MemberRole.VIEWER},
}

# Permissions introduced at each level (inherited upwards through ROLE_HIERARCHY)
_OWN_PERMISSIONS = {
    MemberRole.VIEWER: {Permission.PROJECTS_READ, Permission.TASKS_READ, Permission.FILES_READ},
    MemberRole.FIELD_WORKER: {Permission.TASKS_WRITE, Permission.FILES_WRITE},
    MemberRole.PROJECT_MANAGER: {Permission.PROJECTS_WRITE, Permission.TASKS_DELETE},
    MemberRole.ADMIN: {Permission.PROJECTS_DELETE, Permission.TEAM_MANAGE, Permission.AUDIT_READ},
}


def parse_role(value: str) -> Optional[MemberRole]:
    """Return the MemberRole for a stored value, or None if unknown."""
    try:
        return MemberRole(value)
    except ValueError:
        return None


def role_permissions(role: MemberRole) -> Set[str]:
    """Get all permission strings a role grants, including inherited ones.

    Example:
        >>> "team.manage" in role_permissions(MemberRole.ADMIN)
        True
        >>> "projects.write" in role_permissions(MemberRole.VIEWER)
        False
    """
    granted: Set[str] = set()
    for included in ROLE_HIERARCHY.get(role, set()):
        granted.update(permission.value for permission in _OWN_PERMISSIONS[included])
    return granted


def has_permission(
    role: Optional[str],
    permission: str,
    explicit_permissions: Optional[Iterable[str]] = None,
) -> bool:
    """Check whether a role (plus explicit grants) allows a permission.

    Args:
        role: Stored role value of the membership (unknown roles grant nothing)
        permission: Permission string, e.g. "tasks.write"
        explicit_permissions: Extra permissions stored on the membership

    Returns:
        True if the permission is granted
    """
    permission = permission.value if isinstance(permission, Permission) else permission

    if explicit_permissions and permission in explicit_permissions:
        return True

    member_role = parse_role(role) if role else None
    if member_role is None:
        return False

    return permission in role_permissions(member_role)


def is_valid_permission(value: str) -> bool:
    return value in {permission.value for permission in Permission}
