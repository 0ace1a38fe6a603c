"""Static store configuration and start-up wiring.

One TenantRecordStore exists per (table, tenant column) pair. The stores are
built once from STORE_DEFINITIONS when the application starts and injected
into the services that need them; nothing is registered lazily at runtime.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from sqlalchemy import MetaData

from ..models import Base
from ..models.base import DEFAULT_TENANT_COLUMN
from .record_store import TenantRecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreDefinition:
    """Describes one tenant-scoped table.

    Attributes:
        table_name: Physical table name
        tenant_column: Column holding the tenant id
        parent_links: Parent table name -> foreign key column on this table,
            used by OwnershipValidator.validate_resource_access
    """
    table_name: str
    tenant_column: str = DEFAULT_TENANT_COLUMN
    parent_links: Mapping[str, str] = field(default_factory=dict)


STORE_DEFINITIONS: Dict[str, StoreDefinition] = {
    "projects": StoreDefinition("projects"),
    "tasks": StoreDefinition("tasks", parent_links={"projects": "project_id"}),
    "rfis": StoreDefinition("rfis", parent_links={"projects": "project_id"}),
    "daily_logs": StoreDefinition("daily_logs", parent_links={"projects": "project_id"}),
    "safety_incidents": StoreDefinition("safety_incidents", parent_links={"projects": "project_id"}),
    "invoices": StoreDefinition("invoices", parent_links={"projects": "project_id"}),
    # Legacy table scoped by tenant_id instead of company_id
    "comments": StoreDefinition("comments", tenant_column="tenant_id", parent_links={"tasks": "task_id"}),
    "memberships": StoreDefinition("memberships"),
}


def build_record_stores(
    audit_recorder=None,
    definitions: Optional[Mapping[str, StoreDefinition]] = None,
    metadata: Optional[MetaData] = None,
) -> Dict[str, TenantRecordStore]:
    """Build one TenantRecordStore per definition.

    Args:
        audit_recorder: AuditRecorder shared by all stores
        definitions: Store definitions (default: STORE_DEFINITIONS)
        metadata: MetaData holding the tables (default: Base.metadata)

    Returns:
        dict: store name -> TenantRecordStore

    Raises:
        ValueError: If a definition names an unknown table, tenant column or
            parent link column
    """
    definitions = STORE_DEFINITIONS if definitions is None else definitions
    metadata = Base.metadata if metadata is None else metadata

    stores: Dict[str, TenantRecordStore] = {}
    for name, definition in definitions.items():
        table = metadata.tables.get(definition.table_name)
        if table is None:
            raise ValueError(f"Store '{name}' refers to unknown table '{definition.table_name}'")

        for parent_table, fk_column in definition.parent_links.items():
            if fk_column not in table.c:
                raise ValueError(
                    f"Store '{name}' links to '{parent_table}' through unknown column '{fk_column}'"
                )

        stores[name] = TenantRecordStore(
            table,
            tenant_column=definition.tenant_column,
            audit_recorder=audit_recorder,
        )

    logger.info(f"Built {len(stores)} tenant record stores: {', '.join(sorted(stores))}")
    return stores
