"""Global FastAPI dependencies for tenant context and service wiring.

This module provides:
- get_db: Request session from the application's session factory
- get_tenant_context: The (user_id, company_id) pair resolved by
  TenantContextMiddleware
- service_dependency: Builds a TenantScopedService from the components
  created once in create_app (stores, validator, audit recorder)

Routers never construct stores or validators themselves; everything comes
from ``request.app.state``.
"""

from typing import Callable, Generator, Type

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from .files.service import ProjectFileService
from .tenancy.base_service import TenantScopedService
from .tenancy.context import TenantContext


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/health")
        def health_check(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _client_ip(request: Request):
    # Use first IP in chain (original client)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


def get_tenant_context(request: Request) -> TenantContext:
    """Return the caller's resolved tenant context.

    Raises:
        HTTPException 401: No authenticated user
        HTTPException 400: No tenant selected

    Example:
        @router.get("/projects")
        def list_projects(ctx: TenantContext = Depends(get_tenant_context)):
            ...
    """
    user_id = getattr(request.state, "user_id", None)
    company_id = getattr(request.state, "company_id", None)

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant context required",
        )

    return TenantContext(
        user_id=user_id,
        company_id=company_id,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


def service_dependency(service_cls: Type[TenantScopedService]) -> Callable:
    """Create a dependency that builds ``service_cls`` for the request.

    Example:
        @router.get("/projects")
        def list_projects(service: ProjectService = Depends(service_dependency(ProjectService))):
            ...
    """

    def dependency(
        request: Request,
        db: Session = Depends(get_db),
        ctx: TenantContext = Depends(get_tenant_context),
    ) -> TenantScopedService:
        state = request.app.state
        return service_cls(
            db,
            state.record_stores,
            state.ownership_validator,
            state.audit_recorder,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )

    return dependency


def get_project_file_service(
    request: Request,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> ProjectFileService:
    state = request.app.state
    return ProjectFileService(
        db,
        state.record_stores,
        state.ownership_validator,
        state.audit_recorder,
        file_store=state.file_store,
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )
