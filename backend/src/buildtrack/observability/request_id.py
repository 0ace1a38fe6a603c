"""Per-request correlation context.

Holds the request id and the resolved tenant pair in context variables so
every log line written while serving a request can be tied back to it,
including lines from the isolation layer that never see the request.
"""

import uuid
from contextvars import ContextVar
from typing import Optional, Tuple

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
company_id_var: ContextVar[Optional[str]] = ContextVar("company_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_tenant_ids(user_id: Optional[str], company_id: Optional[str]) -> None:
    """Remember the caller resolved for the current request."""
    user_id_var.set(user_id)
    company_id_var.set(company_id)


def get_tenant_ids() -> Tuple[Optional[str], Optional[str]]:
    """(user_id, company_id) of the current request, or (None, None)."""
    return user_id_var.get(), company_id_var.get()
