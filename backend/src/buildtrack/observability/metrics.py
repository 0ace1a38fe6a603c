"""Prometheus metrics for the tenant isolation layer.

Counts scoped store operations and, more importantly, every denied or
rejected tenant access so cross-tenant probing shows up on dashboards.
"""

from prometheus_client import Counter

# reason: no_membership|inactive_membership|missing_permission|foreign_resource|hierarchy|path
tenant_access_denied_total = Counter(
    "buildtrack_tenant_access_denied_total",
    "Tenant access checks that were denied",
    ["reason"]
)

record_store_operations_total = Counter(
    "buildtrack_record_store_operations_total",
    "Mutating operations performed through tenant record stores",
    ["table", "operation"]  # operation: create|update|delete
)

file_store_operations_total = Counter(
    "buildtrack_file_store_operations_total",
    "Tenant file store operations",
    ["operation", "status"]  # status: success|denied|error
)

audit_write_failures_total = Counter(
    "buildtrack_audit_write_failures_total",
    "Audit entries that could not be persisted"
)
