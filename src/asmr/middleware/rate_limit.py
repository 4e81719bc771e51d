"""Redis-backed fixed window rate limiting middleware.

Requests are counted per client IP and per bucket: credential endpoints
(login, registration) share their own, smaller budget so a password
guessing loop cannot burn through the general allowance of a shared IP.
"""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from asmr.redis_client import get_redis

# Probes are never limited
_EXEMPT_PATHS = frozenset({"/health", "/ready"})

_CREDENTIAL_PATHS = frozenset({"/auth/login", "/auth/register"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed window counters keyed by bucket, client IP and window number."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        window_seconds: int = 60,
        credential_requests_per_window: int = 30,
    ) -> None:
        super().__init__(app)
        self.window_seconds = window_seconds
        self.limits = {"api": requests_per_window, "credentials": credential_requests_per_window}

    def bucket_for(self, path: str) -> str | None:
        """Bucket name for ``path``; None when the path is not limited."""
        if path in _EXEMPT_PATHS:
            return None
        if path in _CREDENTIAL_PATHS:
            return "credentials"
        return "api"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Count the request in its window; 429 once the window is full."""
        bucket = self.bucket_for(request.url.path)
        if bucket is None:
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            # Redis not initialized: no limiting
            return await call_next(request)

        limit = self.limits[bucket]
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        key = f"ratelimit:{bucket}:{client_ip}:{window}"

        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window_seconds + 1)
        results: list[Any] = await pipe.execute()
        count: int = results[0]

        if count > limit:
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Too many requests, please try again later"},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
