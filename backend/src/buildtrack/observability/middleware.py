"""Request correlation middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import generate_request_id, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse or mint ``X-Request-ID`` and log each request as it starts and finishes.

    Must be the outermost middleware: the completion line reads the tenant
    pair that TenantContextMiddleware stored on ``request.state``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)
        started = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path} started",
            extra={"client_ip": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{request.method} {request.url.path} failed after {self._elapsed_ms(started)}ms",
                extra=self._tenant_extra(request),
            )
            raise

        log = logger.warning if response.status_code in (401, 403) else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code} in {self._elapsed_ms(started)}ms",
            extra=self._tenant_extra(request),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    @staticmethod
    def _tenant_extra(request: Request) -> dict:
        return {
            "company_id": getattr(request.state, "company_id", None),
            "user_id": getattr(request.state, "user_id", None),
        }
