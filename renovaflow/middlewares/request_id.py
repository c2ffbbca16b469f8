from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)
logger = logging.getLogger("renovaflow.request")

# Upload downloads and metrics scrapes are not logged.
QUIET_PREFIXES = ("/uploads/", "/metrics")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each API call with a correlation id and log its outcome."""

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
            principal = getattr(request.state, "principal", None) or principal_ctx_var.get()
        finally:
            request_id_ctx_var.reset(token)
            principal_ctx_var.reset(principal_token)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Response-Time", f"{elapsed_ms:.2f}ms")
        if request.url.path.startswith(QUIET_PREFIXES):
            return response
        extra_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
        }
        if principal:
            extra_data["principal"] = principal
        logger.info("request.completed", extra={"extra_data": extra_data})
        return response
