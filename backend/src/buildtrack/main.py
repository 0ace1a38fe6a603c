"""BuildTrack Backend - Main FastAPI Application

Multi-tenant construction project management.

This module creates and configures the FastAPI application, including:
- The tenant isolation components (record stores, ownership validator,
  audit recorder, tenant file store), built once and kept on ``app.state``
- Middleware (request ID correlation, tenant context, CORS)
- Exception handlers mapping isolation-layer errors to HTTP responses
- Domain routers and the health/metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .audit.router import router as audit_router
from .audit.service import AuditRecorder
from .config import settings
from .database import SessionFactory, SessionLocal
from .files.router import router as files_router
from .memberships.router import router as team_router
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .projects.router import router as projects_router
from .storage.file_store import TenantFileStore
from .storage.ports import FileStoragePort, StorageError
from .storage.storage_config import build_file_backend, load_storage_config
from .tasks.router import router as tasks_router
from .tenancy.errors import TenancyError
from .tenancy.middleware import TenantContextMiddleware
from .tenancy.ownership import OwnershipValidator
from .tenancy.registry import build_record_stores

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("BuildTrack API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")

    yield

    logger.info("BuildTrack API shutting down...")


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def tenancy_exception_handler(request: Request, exc: TenancyError) -> JSONResponse:
    """Translate isolation-layer errors into their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.message},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns a structured error response with field-level details.
    """
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "storage_error",
            "message": "A storage error occurred. Please try again later.",
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged but not exposed to the client.
    """
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    session_factory: Optional[SessionFactory] = None,
    file_backend: Optional[FileStoragePort] = None,
) -> FastAPI:
    """Build a configured application instance.

    Args:
        session_factory: Session factory for request sessions and audit
            writes (default: SessionLocal)
        file_backend: Storage backend for tenant files (default: built from
            settings via ``build_file_backend``)
    """
    is_production = settings.ENVIRONMENT == "production"
    app = FastAPI(
        title="BuildTrack API",
        description="Multi-tenant construction project management",
        version="0.1.0",
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )

    session_factory = session_factory or SessionLocal
    audit_recorder = AuditRecorder(session_factory)
    record_stores = build_record_stores(audit_recorder)
    if file_backend is None:
        file_backend = build_file_backend(load_storage_config(settings))

    app.state.session_factory = session_factory
    app.state.audit_recorder = audit_recorder
    app.state.record_stores = record_stores
    app.state.ownership_validator = OwnershipValidator(record_stores)
    app.state.file_store = TenantFileStore(
        file_backend,
        audit_recorder,
        url_prefix=settings.FILE_URL_PREFIX,
        default_expires_in=settings.PRESIGNED_URL_EXPIRES_SECONDS,
    )

    # Middleware: last added runs first, so request IDs exist before tenant resolution
    app.add_middleware(
        TenantContextMiddleware,
        secret_key=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(TenancyError, tenancy_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StorageError, storage_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Observability (health, metrics)
    app.include_router(observability_router)

    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(tasks_router, prefix="/api/v1")
    app.include_router(files_router, prefix="/api/v1")
    app.include_router(team_router, prefix="/api/v1")
    app.include_router(audit_router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        """Root endpoint - API information."""
        return {
            "name": "BuildTrack API",
            "version": "0.1.0",
            "status": "running",
            "docs": None if is_production else "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "buildtrack.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
