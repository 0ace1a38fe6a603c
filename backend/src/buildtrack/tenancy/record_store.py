"""Tenant-scoped record store.

A TenantRecordStore guards one table. Every statement it issues carries the
predicate ``<tenant column> = :tenant_id``; there is no unscoped read, write
or delete path. Table and column names come from the SQLAlchemy ``Table``
the store was built with, so caller-supplied keys can only ever name real
columns, and every value is a bound parameter.

Ownership semantics:
- A record that exists under another tenant is reported exactly like a
  missing record (``None`` from get_by_id, NotFoundError from update/delete).
- The tenant column is forced on create and stripped from updates.
- Update and delete repeat the tenant predicate in the write's own WHERE
  clause, and the existence check and the write share one transaction, so
  a concurrent delete between the two surfaces as NotFoundError instead of
  a silent no-op.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.base import DEFAULT_TENANT_COLUMN, generate_id
from ..observability.metrics import record_store_operations_total
from .errors import NotFoundError, TenantValidationError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

ORDER_DIRECTIONS = ("ASC", "DESC")


@dataclass
class QueryOptions:
    """Ordering and pagination for TenantRecordStore.query.

    Attributes:
        order_by: Column to order by (must be a column of the store's table)
        order_direction: "ASC" or "DESC"
        limit: Maximum number of records (None = unbounded)
        offset: Records to skip; only applied when a limit is present
    """
    order_by: Optional[str] = None
    order_direction: str = "ASC"
    limit: Optional[int] = None
    offset: Optional[int] = None

    def __post_init__(self):
        self.order_direction = (self.order_direction or "ASC").upper()
        if self.order_direction not in ORDER_DIRECTIONS:
            raise TenantValidationError(
                f"Invalid order direction '{self.order_direction}' (expected ASC or DESC)"
            )
        if self.limit is not None and self.limit < 1:
            raise TenantValidationError("limit must be a positive integer")
        if self.offset is not None and self.offset < 0:
            raise TenantValidationError("offset must not be negative")


class TenantRecordStore:
    """Generic tenant-scoped CRUD accessor over one table.

    Stores hold no session; every operation receives the request's Session.
    Mutations commit the caller's session (one statement per operation) and
    are then audited through the injected AuditRecorder when an actor is
    given. Audit failures never reach the caller.

    Example:
        stores = build_record_stores(audit_recorder)
        task = stores["tasks"].create(db, "acme", {"title": "Pour slab"}, actor_id="u-1")
        stores["tasks"].get_by_id(db, "other", task["id"])  # -> None
    """

    def __init__(
        self,
        table: Table,
        tenant_column: str = DEFAULT_TENANT_COLUMN,
        audit_recorder=None,
        id_column: str = "id",
    ):
        """Initialize the store.

        Args:
            table: SQLAlchemy table to guard
            tenant_column: Name of the table's tenant column
            audit_recorder: AuditRecorder receiving create/update/delete entries
            id_column: Primary key column name

        Raises:
            ValueError: If the table lacks the tenant or id column
        """
        if tenant_column not in table.c:
            raise ValueError(f"Table '{table.name}' has no tenant column '{tenant_column}'")
        if id_column not in table.c:
            raise ValueError(f"Table '{table.name}' has no id column '{id_column}'")

        self.table = table
        self.tenant_column = tenant_column
        self.id_column = id_column
        self.audit_recorder = audit_recorder

    @property
    def table_name(self) -> str:
        return self.table.name

    def __repr__(self) -> str:
        return f"TenantRecordStore(table={self.table_name!r}, tenant_column={self.tenant_column!r})"

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------

    def _column(self, name: str):
        """Resolve a caller-supplied column name against the table."""
        if not isinstance(name, str) or name not in self.table.c:
            raise TenantValidationError(f"Unknown column '{name}' for {self.table_name}")
        return self.table.c[name]

    def _scope(self, tenant_id: str, filters: Optional[Mapping[str, Any]] = None) -> list:
        """Build the WHERE conditions: tenant predicate first, then equality filters.

        Filters whose value is None are ignored.
        """
        if not tenant_id:
            raise TenantValidationError("Tenant id is required")

        conditions = [self.table.c[self.tenant_column] == tenant_id]
        for key, value in (filters or {}).items():
            if value is None:
                continue
            conditions.append(self._column(key) == value)
        return conditions

    def _by_id(self, tenant_id: str, record_id: str) -> list:
        return self._scope(tenant_id) + [self.table.c[self.id_column] == record_id]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        db: Session,
        tenant_id: str,
        filters: Optional[Mapping[str, Any]] = None,
        options: Optional[QueryOptions] = None,
    ) -> List[Record]:
        """Return all records of the tenant matching every filter by equality.

        Returns an empty list when nothing matches.
        """
        stmt = select(self.table).where(*self._scope(tenant_id, filters))

        if options is not None:
            if options.order_by:
                column = self._column(options.order_by)
                stmt = stmt.order_by(column.desc() if options.order_direction == "DESC" else column.asc())
            if options.limit is not None:
                stmt = stmt.limit(options.limit)
                if options.offset:
                    stmt = stmt.offset(options.offset)

        rows = db.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    def get_by_id(self, db: Session, tenant_id: str, record_id: str) -> Optional[Record]:
        """Fetch one record of the tenant by id.

        A record owned by another tenant yields None, exactly like a missing one.
        """
        stmt = select(self.table).where(*self._by_id(tenant_id, record_id)).limit(1)
        row = db.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def get_or_404(self, db: Session, tenant_id: str, record_id: str) -> Record:
        """Like get_by_id, but raise NotFoundError instead of returning None."""
        record = self.get_by_id(db, tenant_id, record_id)
        if record is None:
            raise NotFoundError(f"{self.table_name} record not found")
        return record

    def count(self, db: Session, tenant_id: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        """Count records matching the same predicate as query()."""
        stmt = select(func.count()).select_from(self.table).where(*self._scope(tenant_id, filters))
        return db.execute(stmt).scalar_one()

    def validate_ownership(self, db: Session, tenant_id: str, record_id: str) -> bool:
        """True iff a record with this id exists under this tenant."""
        return self.get_by_id(db, tenant_id, record_id) is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        db: Session,
        tenant_id: str,
        data: Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> Record:
        """Insert a record for the tenant.

        The tenant column is always overwritten with ``tenant_id``; an id is
        generated when the payload has none.

        Returns:
            The stored record (re-read, so column defaults are included)

        Raises:
            TenantValidationError: Unknown column or constraint violation
        """
        record = dict(data)
        record[self.tenant_column] = tenant_id
        if not record.get(self.id_column):
            record[self.id_column] = generate_id()
        self._scope(tenant_id)
        for key in record:
            self._column(key)

        try:
            db.execute(insert(self.table).values(**record))
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(
                f"Insert into {self.table_name} rejected: {e.orig}",
                extra={"company_id": tenant_id, "user_id": actor_id},
            )
            raise TenantValidationError(f"{self.table_name} record violates a table constraint")

        record_id = record[self.id_column]
        record_store_operations_total.labels(table=self.table_name, operation="create").inc()
        logger.info(
            f"Created {self.table_name} record {record_id}",
            extra={"company_id": tenant_id, "user_id": actor_id},
        )

        self._audit("create", tenant_id, record_id, actor_id, {"data": record})
        return self.get_by_id(db, tenant_id, record_id) or record

    def update(
        self,
        db: Session,
        tenant_id: str,
        record_id: str,
        updates: Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> Record:
        """Apply updates to a record of the tenant.

        The tenant column and the id are stripped from ``updates``. An update
        left empty after stripping changes nothing and is not audited.

        Returns:
            The record after the update

        Raises:
            NotFoundError: Record missing or owned by another tenant (no write attempted)
            TenantValidationError: Unknown column or constraint violation
        """
        existing = self.get_by_id(db, tenant_id, record_id)
        if existing is None:
            raise NotFoundError(f"{self.table_name} record not found")

        safe_updates = {
            key: value for key, value in updates.items()
            if key not in (self.tenant_column, self.id_column)
        }
        for key in safe_updates:
            self._column(key)

        if not safe_updates:
            return existing

        try:
            result = db.execute(
                update(self.table)
                .where(*self._by_id(tenant_id, record_id))
                .values(**safe_updates)
            )
            if result.rowcount == 0:
                db.rollback()
                raise NotFoundError(f"{self.table_name} record not found")
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(
                f"Update of {self.table_name} {record_id} rejected: {e.orig}",
                extra={"company_id": tenant_id, "user_id": actor_id},
            )
            raise TenantValidationError(f"{self.table_name} record violates a table constraint")

        record_store_operations_total.labels(table=self.table_name, operation="update").inc()
        logger.info(
            f"Updated {self.table_name} record {record_id}",
            extra={"company_id": tenant_id, "user_id": actor_id},
        )

        self._audit("update", tenant_id, record_id, actor_id, {"updates": safe_updates})
        return self.get_by_id(db, tenant_id, record_id) or {**existing, **safe_updates}

    def delete(
        self,
        db: Session,
        tenant_id: str,
        record_id: str,
        actor_id: Optional[str] = None,
    ) -> Record:
        """Delete a record of the tenant.

        Returns:
            Snapshot of the deleted record (also stored in the audit entry)

        Raises:
            NotFoundError: Record missing or owned by another tenant (no write attempted)
        """
        existing = self.get_by_id(db, tenant_id, record_id)
        if existing is None:
            raise NotFoundError(f"{self.table_name} record not found")

        result = db.execute(delete(self.table).where(*self._by_id(tenant_id, record_id)))
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError(f"{self.table_name} record not found")
        db.commit()

        record_store_operations_total.labels(table=self.table_name, operation="delete").inc()
        logger.info(
            f"Deleted {self.table_name} record {record_id}",
            extra={"company_id": tenant_id, "user_id": actor_id},
        )

        self._audit("delete", tenant_id, record_id, actor_id, {"deleted": existing})
        return existing

    def _audit(
        self,
        action: str,
        tenant_id: str,
        record_id: str,
        actor_id: Optional[str],
        metadata: Dict[str, Any],
    ) -> None:
        if not actor_id or self.audit_recorder is None:
            return
        self.audit_recorder.log(
            company_id=tenant_id,
            actor_id=actor_id,
            action=action,
            resource_type=self.table_name,
            resource_id=str(record_id),
            metadata=metadata,
        )
