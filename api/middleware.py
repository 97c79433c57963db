import os
import time
import logging
from collections import deque
from threading import Lock
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "30"))
RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# only these (method, path) pairs reach the model; everything else is free
RATE_LIMITED_ROUTES = {("POST", "/api/analyze")}


def client_ip(request: Request) -> str:
    # honour X-Forwarded-For if behind a proxy / load balancer
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class SlidingWindow:
    """Per-client hit timestamps inside a rolling window. Idle clients are forgotten."""

    def __init__(self, limit: int, window_seconds: float):
        self.limit = limit
        self.window_seconds = window_seconds
        self._hits: dict[str, deque] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._hits)

    def acquire(self, client: str, now: float) -> Optional[int]:
        """Record a hit for `client`. Returns None if allowed, else seconds until a slot frees."""
        with self._lock:
            self._evict(now)
            hits = self._hits.get(client)
            if hits is not None and len(hits) >= self.limit:
                return int(self.window_seconds - (now - hits[0])) + 1
            self._hits.setdefault(client, deque()).append(now)
            return None

    def _evict(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for client in list(self._hits):
            hits = self._hits[client]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[client]


class AnalyzeRateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit: int = RATE_LIMIT_REQUESTS, window_seconds: int = RATE_LIMIT_WINDOW):
        super().__init__(app)
        self.window = SlidingWindow(limit, window_seconds)

    async def dispatch(self, request: Request, call_next):
        if (request.method, request.url.path) not in RATE_LIMITED_ROUTES:
            return await call_next(request)

        ip = client_ip(request)
        retry_after = self.window.acquire(ip, time.monotonic())
        if retry_after is not None:
            logger.warning("Analysis rate limit hit for %s (%d clients tracked)", ip, len(self.window))
            return JSONResponse(
                status_code=429,
                content={"error": f"Too many analysis requests. Retry in {retry_after}s."},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Logs each request with its latency and cache outcome, and exposes the latency as a header."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Process-Time-Ms"] = str(duration_ms)
        logger.info(
            "%s %s -> %d (%dms, cache=%s)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            response.headers.get("X-Cache", "-"),
        )
        return response
