"""Resolved caller identity for one request."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TenantContext:
    """The (user, tenant) pair every isolation-layer call is made for.

    The pair is resolved by TenantContextMiddleware; the isolation layer
    trusts it as-is.
    """
    user_id: str
    company_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
