"""
OwnerGate Backend: Rate Limiting Middleware
============================================

What:  Fixed-window request budget per caller.
Why:   Bounds how fast one tenant (or one anonymous IP) can probe record ids
       or hammer list endpoints.
How:   Each key gets a counter and a reset time. The first request of a window
       starts it; requests past `rate_limit_requests` get 429 until the
       window resets. Authenticated requests are keyed by caller id, so one
       user behind many IPs still shares a budget. Anonymous requests are
       keyed by client IP.

Headers on every limited response:
    X-RateLimit-Limit, X-RateLimit-Remaining, X-RateLimit-Reset (epoch seconds)

Limitation:
    State is in process memory. Multiple workers each keep their own
    counters; a shared Redis counter would be needed to enforce a global budget.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.middleware.request_id import request_id_var
from app.services.identity import resolve_identity

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowLimiter:
    """Counter store behind the middleware; usable on its own in tests."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, _Window] = {}
        self._last_sweep = 0.0

    def check(self, key: str, now: Optional[float] = None) -> Tuple[bool, int, float]:
        """Count one request for `key`. Returns (allowed, remaining, reset_at)."""
        now = time.time() if now is None else now
        self._sweep(now)

        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            window = _Window(count=1, reset_at=now + self.window_seconds)
            self._windows[key] = window
            return True, self.max_requests - 1, window.reset_at

        if window.count >= self.max_requests:
            return False, 0, window.reset_at

        window.count += 1
        return True, self.max_requests - window.count, window.reset_at

    def _sweep(self, now: float) -> None:
        # Drop expired windows at most once per window length
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Swept %d expired rate-limit windows", len(expired))


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, limiter: Optional[FixedWindowLimiter] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = limiter or FixedWindowLimiter(
            settings.rate_limit_requests, settings.rate_limit_window
        )

    @staticmethod
    def key_for(request: Request) -> str:
        identity = resolve_identity(request)
        if identity.caller_id is not None:
            return f"caller:{identity.caller_id}"
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = self.key_for(request)
        allowed, remaining, reset_at = self.limiter.check(key)
        headers = {
            "X-RateLimit-Limit": str(self.limiter.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(int(reset_at)),
        }

        if not allowed:
            retry_after = max(1, int(reset_at - time.time()) + 1)
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning("Rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={**headers, "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
