"""Tenant isolation layer.

Record stores, ownership validation, the service base class and the
request-level tenant context.
"""

from .base_service import TenantScopedService
from .context import TenantContext
from .errors import (
    ConflictError,
    FileNotFoundOrDeniedError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    TenancyError,
    TenantValidationError,
)
from .ownership import OwnershipValidator
from .record_store import QueryOptions, TenantRecordStore
from .registry import STORE_DEFINITIONS, StoreDefinition, build_record_stores
from .roles import MemberRole, MembershipStatus, Permission, has_permission, role_permissions

__all__ = [
    "TenantScopedService",
    "TenantContext",
    "TenancyError",
    "NotFoundError",
    "FileNotFoundOrDeniedError",
    "ForbiddenError",
    "TenantValidationError",
    "ConflictError",
    "InternalError",
    "OwnershipValidator",
    "QueryOptions",
    "TenantRecordStore",
    "STORE_DEFINITIONS",
    "StoreDefinition",
    "build_record_stores",
    "MemberRole",
    "MembershipStatus",
    "Permission",
    "has_permission",
    "role_permissions",
]
