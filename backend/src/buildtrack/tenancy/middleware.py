"""Tenant context extraction middleware.

Fills ``request.state.user_id`` and ``request.state.company_id`` for every
request. A Bearer JWT (claims ``sub`` and ``company_id``) takes precedence;
without a token the ``X-User-Id`` / ``X-Company-Id`` headers set by an
upstream gateway are used. No user directory lookup happens here.
"""

from typing import Callable, Optional

import jwt
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging_config import get_logger
from ..observability.request_id import set_tenant_ids

logger = get_logger(__name__)

USER_HEADER = "X-User-Id"
COMPANY_HEADER = "X-Company-Id"


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Resolve the caller's (user_id, company_id) pair."""

    def __init__(self, app, secret_key: str, algorithm: str = "HS256"):
        super().__init__(app)
        self.secret_key = secret_key
        self.algorithm = algorithm

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        user_id: Optional[str] = None
        company_id: Optional[str] = None

        authorization = request.headers.get("Authorization", "")
        if authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
            try:
                payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            except jwt.ExpiredSignatureError:
                return self._unauthorized("Token has expired")
            except jwt.InvalidTokenError as e:
                logger.warning(f"Rejected invalid token: {e}")
                return self._unauthorized("Invalid token")

            user_id = payload.get("sub")
            company_id = payload.get("company_id")
        else:
            user_id = request.headers.get(USER_HEADER)
            company_id = request.headers.get(COMPANY_HEADER)

        request.state.user_id = user_id or None
        request.state.company_id = company_id or None
        set_tenant_ids(request.state.user_id, request.state.company_id)

        return await call_next(request)

    @staticmethod
    def _unauthorized(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "unauthorized", "message": message},
            headers={"WWW-Authenticate": "Bearer"},
        )
