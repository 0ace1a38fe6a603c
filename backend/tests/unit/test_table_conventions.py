"""Test database table conventions and constraints.

Verifies that all tenant-scoped tables follow the isolation conventions:
- Tenant column (company_id, or tenant_id for legacy tables) NOT NULL
- Index on the tenant column
- String id primary key
- Standard timestamp columns
- Every registered store has a table, and every tenant table has a store
"""

import pytest
from sqlalchemy import inspect

from buildtrack.models import Base
from buildtrack.tenancy.registry import STORE_DEFINITIONS

# Tables that are append-only (no updated_at needed)
APPEND_ONLY_TABLES = ["audit_log"]

# Tables that are tenant-scoped but not accessed through a record store
UNREGISTERED_TENANT_TABLES = ["audit_log"]


@pytest.fixture
def inspector(engine):
    return inspect(engine)


class TestTenantTableConventions:

    def test_every_store_has_its_table(self, inspector):
        tables = set(inspector.get_table_names())
        for definition in STORE_DEFINITIONS.values():
            assert definition.table_name in tables, \
                f"Store table '{definition.table_name}' does not exist"

    def test_every_tenant_table_is_registered(self):
        registered = {d.table_name for d in STORE_DEFINITIONS.values()} | set(UNREGISTERED_TENANT_TABLES)
        assert set(Base.metadata.tables) == registered

    @pytest.mark.parametrize("definition", list(STORE_DEFINITIONS.values()), ids=lambda d: d.table_name)
    def test_tenant_column_not_nullable(self, inspector, definition):
        columns = {col["name"]: col for col in inspector.get_columns(definition.table_name)}

        assert definition.tenant_column in columns, \
            f"Table '{definition.table_name}' is missing tenant column {definition.tenant_column}"
        assert not columns[definition.tenant_column]["nullable"], \
            f"Table '{definition.table_name}' {definition.tenant_column} must be NOT NULL"

    @pytest.mark.parametrize("definition", list(STORE_DEFINITIONS.values()), ids=lambda d: d.table_name)
    def test_tenant_column_indexed(self, inspector, definition):
        indexes = inspector.get_indexes(definition.table_name)
        unique = inspector.get_unique_constraints(definition.table_name)

        assert any(definition.tenant_column in idx["column_names"] for idx in indexes + unique), \
            f"Table '{definition.table_name}' should have index on {definition.tenant_column}"

    @pytest.mark.parametrize("definition", list(STORE_DEFINITIONS.values()), ids=lambda d: d.table_name)
    def test_parent_links_are_foreign_keys(self, inspector, definition):
        foreign_keys = inspector.get_foreign_keys(definition.table_name)

        for parent_table, fk_column in definition.parent_links.items():
            assert any(
                fk["constrained_columns"] == [fk_column] and fk["referred_table"] == parent_table
                for fk in foreign_keys
            ), f"{definition.table_name}.{fk_column} must reference {parent_table}"

    def test_comments_use_legacy_tenant_column(self, inspector):
        columns = {col["name"] for col in inspector.get_columns("comments")}
        assert "tenant_id" in columns
        assert "company_id" not in columns


class TestTableStructure:

    def test_all_tables_have_id_primary_key(self, inspector):
        for table_name in inspector.get_table_names():
            pk = inspector.get_pk_constraint(table_name)
            assert pk["constrained_columns"] == ["id"], f"Table '{table_name}' must have id primary key"

    def test_timestamp_columns(self, inspector):
        for table_name in inspector.get_table_names():
            columns = {col["name"] for col in inspector.get_columns(table_name)}
            assert "created_at" in columns, f"Table '{table_name}' missing created_at"
            if table_name not in APPEND_ONLY_TABLES:
                assert "updated_at" in columns, f"Table '{table_name}' missing updated_at"

    def test_membership_unique_per_user_and_company(self, inspector):
        unique = inspector.get_unique_constraints("memberships")
        assert any(sorted(c["column_names"]) == ["company_id", "user_id"] for c in unique)
