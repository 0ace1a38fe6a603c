"""Observability module: structured logging, request correlation and metrics."""

from .logging_config import configure_logging, get_logger
from .request_id import (
    generate_request_id,
    get_request_id,
    get_tenant_ids,
    request_id_var,
    set_request_id,
    set_tenant_ids,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "get_tenant_ids",
    "set_tenant_ids",
    "RequestIDMiddleware",
]
