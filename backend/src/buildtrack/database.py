"""Database session factory and configuration.

Provides database connectivity and session management for the BuildTrack backend.
Tenant scoping is not done here; it is enforced by the record stores in
``buildtrack.tenancy`` which add the tenant predicate to every statement.
"""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

SessionFactory = Callable[[], Session]


def build_engine(database_url: str) -> Engine:
    """Create an engine with pool settings appropriate for the backend.

    Pool settings only apply to PostgreSQL (not SQLite).
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,  # Set to True for SQL query logging
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(database_url, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = build_session_factory(engine)


@contextmanager
def session_scope(
    session_factory: Optional[SessionFactory] = None,
) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with session_scope() as session:
            session.execute(select(AuditLog))

    Automatically commits on success, rolls back on exception.

    Args:
        session_factory: Factory to open the session with (default: SessionLocal)
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
