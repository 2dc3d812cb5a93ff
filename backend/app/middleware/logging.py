"""
OwnerGate Backend: Access Logging Middleware
=============================================

What:  One log line per HTTP request with status, duration, request ID and caller.
Why:   Authorization failures (401/403) show up at WARNING with the caller id
       attached, which is what an operator needs when a tenant reports
       "I can't see my invoice".

Privacy:
    Logged: method, path, status, duration, request ID, caller id, client IP.
    Never logged: request bodies, tokens, cookies, Authorization headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var
from app.services.identity import resolve_identity

logger = logging.getLogger("ownergate.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        caller = resolve_identity(request).caller_id or "anonymous"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] caller=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            caller,
            client_ip,
            extra={
                "request_id": rid,
                "caller_id": caller,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
