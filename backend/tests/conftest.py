"""Pytest fixtures for the tenant isolation layer.

Provides reusable test fixtures for:
- A file-backed SQLite database per test (all tables created from the models)
- Record stores, ownership validator and audit recorder wired like create_app
- A tenant file store on a temporary directory
- A TestClient over an application built on the same components
- Helpers to seed memberships and read back audit entries

Usage:
    def test_member_can_list(client, add_member, headers):
        add_member("user-1", "acme", role="VIEWER")
        response = client.get("/api/v1/projects", headers=headers("user-1", "acme"))
        assert response.status_code == 200
"""

import os
import sys
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tenant-context-tokens")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOG_JSON", "false")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from typing import Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from buildtrack.audit.service import AuditRecorder
from buildtrack.database import build_engine, build_session_factory
from buildtrack.models import AuditLog, Base
from buildtrack.storage.file_store import TenantFileStore
from buildtrack.storage.local_adapter import LocalFileStorageAdapter
from buildtrack.tenancy.ownership import OwnershipValidator
from buildtrack.tenancy.registry import build_record_stores


def tenant_headers(user_id: str, company_id: str) -> Dict[str, str]:
    """Gateway-style identity headers understood by TenantContextMiddleware."""
    return {"X-User-Id": user_id, "X-Company-Id": company_id}


@pytest.fixture(scope="function")
def engine(tmp_path):
    """SQLite engine on a fresh database file with every table created."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'buildtrack-test.db'}")
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def audit_recorder(session_factory) -> AuditRecorder:
    return AuditRecorder(session_factory)


@pytest.fixture(scope="function")
def record_stores(audit_recorder):
    return build_record_stores(audit_recorder)


@pytest.fixture(scope="function")
def validator(record_stores) -> OwnershipValidator:
    return OwnershipValidator(record_stores)


@pytest.fixture(scope="function")
def add_member(db_session: Session, record_stores) -> Callable[..., dict]:
    """Seed a membership without writing an audit entry.

    Example:
        add_member("user-1", "acme", role="PROJECT_MANAGER")
    """

    def _add(
        user_id: str,
        company_id: str,
        role: str = "ADMIN",
        status: str = "active",
        permissions: Optional[List[str]] = None,
    ) -> dict:
        return record_stores["memberships"].create(
            db_session,
            company_id,
            {"user_id": user_id, "role": role, "status": status, "permissions": permissions},
        )

    return _add


@pytest.fixture(scope="function")
def audit_entries(session_factory) -> Callable[..., List[AuditLog]]:
    """Read back audit entries, oldest first, optionally for one company."""

    def _entries(company_id: Optional[str] = None) -> List[AuditLog]:
        stmt = select(AuditLog).order_by(AuditLog.created_at)
        if company_id is not None:
            stmt = stmt.where(AuditLog.company_id == company_id)
        with session_factory() as session:
            entries = session.execute(stmt).scalars().all()
            session.expunge_all()
            return entries

    return _entries


@pytest.fixture(scope="function")
def file_backend(tmp_path) -> LocalFileStorageAdapter:
    return LocalFileStorageAdapter(base_dir=tmp_path / "files")


@pytest.fixture(scope="function")
def file_store(file_backend, audit_recorder) -> TenantFileStore:
    return TenantFileStore(file_backend, audit_recorder)


@pytest.fixture(scope="function")
def app(session_factory, file_backend):
    from buildtrack.main import create_app

    return create_app(session_factory=session_factory, file_backend=file_backend)


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Unauthenticated test client; pass headers(user_id, company_id) per request."""
    return TestClient(app)


@pytest.fixture(scope="function")
def headers() -> Callable[[str, str], Dict[str, str]]:
    return tenant_headers


@pytest.fixture(scope="function")
def metric_value() -> Callable[..., float]:
    """Current value of a Prometheus sample (0.0 when never incremented).

    Example:
        before = metric_value("buildtrack_tenant_access_denied_total", reason="path")
    """
    from prometheus_client import REGISTRY

    def _value(name: str, **labels) -> float:
        return REGISTRY.get_sample_value(name, labels) or 0.0

    return _value
