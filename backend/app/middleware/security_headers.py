"""
OwnerGate Backend: Security Headers Middleware
===============================================

What:  Adds browser hardening headers to every response.
Why:   Admin pages render tenant data; framing and MIME sniffing are refused
       outright.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            # Routes may set a stricter value of their own
            response.headers.setdefault(name, value)
        return response
