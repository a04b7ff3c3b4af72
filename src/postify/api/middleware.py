"""API request middleware: rate limiting, timing, structured logging, error wrapping."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from postify.runtime.logging_config import ctx_request_id

log = logging.getLogger(__name__)

_RATE_LIMITED_PREFIX = "/api"


class _HTTPTokenBucket:
    """Simple per-client token bucket for HTTP rate limiting."""

    __slots__ = ("rpm", "burst", "_tokens", "_last_refill")

    def __init__(self, rpm: int, burst: int) -> None:
        self.rpm = rpm
        self.burst = burst
        self._tokens: float = float(rpm + burst)
        self._last_refill: float = time.monotonic()

    @property
    def _capacity(self) -> int:
        return self.rpm + self.burst

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self._capacity, self._tokens + elapsed * (self.rpm / 60.0))
        self._last_refill = now

    def try_acquire(self) -> bool:
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    @property
    def retry_after_seconds(self) -> float:
        """Seconds until the next token is available."""
        if self._tokens >= 1.0:
            return 0.0
        return (1.0 - self._tokens) / (self.rpm / 60.0)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client-IP rate limiter for ``/api`` routes using token buckets.

    Returns 429 with retry_after_seconds when a client exceeds their budget.
    """

    def __init__(
        self, app: Any, rpm: int = 10, burst: int = 0, max_buckets: int = 10_000
    ) -> None:
        super().__init__(app)
        self._rpm = rpm
        self._burst = burst
        self._max_buckets = max_buckets
        self._buckets: dict[str, _HTTPTokenBucket] = {}

    def _get_bucket(self, client_ip: str) -> _HTTPTokenBucket:
        if client_ip not in self._buckets:
            if len(self._buckets) >= self._max_buckets:
                self._prune_idle()
            self._buckets[client_ip] = _HTTPTokenBucket(self._rpm, self._burst)
        return self._buckets[client_ip]

    def _prune_idle(self) -> None:
        """Drop buckets that have refilled completely; they equal a fresh bucket."""
        refill_s = (self._rpm + self._burst) * 60.0 / self._rpm
        now = time.monotonic()
        idle = [ip for ip, b in self._buckets.items() if now - b._last_refill >= refill_s]
        for ip in idle:
            del self._buckets[ip]
        if idle:
            log.debug("rate_limit.pruned buckets=%d", len(idle))

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        if not request.url.path.startswith(_RATE_LIMITED_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket = self._get_bucket(client_ip)

        if not bucket.try_acquire():
            return JSONResponse(
                {
                    "error": "Too many requests from this IP, please try again later.",
                    "retry_after_seconds": round(bucket.retry_after_seconds, 1),
                },
                status_code=429,
            )

        return await call_next(request)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Times requests, tags logs with a request id, and wraps unhandled errors."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        start = time.monotonic()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        token = ctx_request_id.set(request_id)

        try:
            response = await call_next(request)
            elapsed_ms = (time.monotonic() - start) * 1000
            log.info(
                "api.request method=%s path=%s status=%d duration_ms=%.1f",
                method,
                path,
                response.status_code,
                elapsed_ms,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            elapsed_ms = (time.monotonic() - start) * 1000
            log.error(
                "api.unhandled_error method=%s path=%s error=%s duration_ms=%.1f",
                method,
                path,
                str(exc),
                elapsed_ms,
            )
            return JSONResponse(
                {
                    "error": "Internal server error",
                    "message": "An unexpected error occurred while processing your request",
                },
                status_code=500,
            )
        finally:
            ctx_request_id.reset(token)
