"""
Sliding-window rate limiting for the /api routes.
Why: keep the public contact form and the admin endpoints from being hammered
by a single client; state lives in process memory like the cache.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .logging import get_logger

_LOG = get_logger(__name__)

API_PREFIX = "/api/"
CONTACT_PATH = "/api/contact"
ADMIN_PREFIXES = ("/api/admin/", "/api/projects", "/api/experiences", "/api/contact/")

TOO_MANY_REQUESTS = {
    "success": False,
    "error": "Too Many Requests",
    "message": "Rate limit exceeded. Please try again later.",
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset: int  # epoch seconds when the oldest counted request leaves the window

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class RateLimiter:
    """Allow at most ``limit`` requests per identifier in any ``window_seconds``."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}

    def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        window_start = now - self.window_seconds
        recent = [ts for ts in self._hits.get(identifier, []) if ts > window_start]
        allowed = len(recent) < self.limit
        if allowed:
            recent.append(now)
        self._hits[identifier] = recent
        oldest = recent[0] if recent else now
        return RateLimitResult(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - len(recent)),
            reset=math.ceil(oldest + self.window_seconds),
        )

    def cleanup(self) -> int:
        """Forget identifiers with no request inside the window."""
        window_start = self._clock() - self.window_seconds
        stale = [
            identifier
            for identifier, stamps in self._hits.items()
            if not stamps or stamps[-1] <= window_start
        ]
        for identifier in stale:
            del self._hits[identifier]
        return len(stale)

    def __len__(self) -> int:
        return len(self._hits)


class RateLimits:
    """The three limiters the API uses, picked by request path."""

    def __init__(
        self,
        api: RateLimiter,
        admin: RateLimiter,
        contact: RateLimiter,
        cleanup_interval: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api = api
        self.admin = admin
        self.contact = contact
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._last_cleanup = clock()

    def for_request(self, method: str, path: str) -> Optional[RateLimiter]:
        if not path.startswith(API_PREFIX):
            return None
        if path.rstrip("/") == CONTACT_PATH:
            # only the public form submission gets the strict limiter
            return self.contact if method == "POST" else self.admin
        if path.startswith(ADMIN_PREFIXES):
            return self.admin
        return self.api

    def check(self, method: str, path: str, identifier: str) -> Optional[RateLimitResult]:
        limiter = self.for_request(method, path)
        if limiter is None:
            return None
        self._maybe_cleanup()
        return limiter.check(identifier)

    def _maybe_cleanup(self) -> None:
        now = self._clock()
        if now - self._last_cleanup < self.cleanup_interval:
            return
        self._last_cleanup = now
        removed = sum(limiter.cleanup() for limiter in (self.api, self.admin, self.contact))
        if removed:
            _LOG.debug(f"rate limit cleanup removed={removed}")


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limits: RateLimits) -> None:
        super().__init__(app)
        self.limits = limits

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        identifier = client_identifier(request)
        result = self.limits.check(request.method, request.url.path, identifier)
        if result is None:
            return await call_next(request)
        if not result.allowed:
            _LOG.warning(
                f"rate limit exceeded path={request.url.path} client={identifier} "
                f"limit={result.limit}"
            )
            return JSONResponse(TOO_MANY_REQUESTS, status_code=429, headers=result.headers())
        response = await call_next(request)
        for name, value in result.headers().items():
            response.headers[name] = value
        return response
