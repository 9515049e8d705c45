"""
Per-request bookkeeping for the devfolio API: request id, latency and error
counts feed /metrics, one log line per request, and the security headers the
portfolio sends on every JSON response.
"""

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .headers import SECURITY_HEADERS
from .logging import get_logger
from .metrics import metrics

_LOG = get_logger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            metrics.increment_requests()
            metrics.record_latency(duration_ms)
            status = response.status_code if response is not None else "ERROR"
            if response is None or response.status_code >= 500:
                metrics.increment_errors()
            _LOG.info(
                f"path={request.url.path} method={request.method} "
                f"status={status} "
                f"duration_ms={duration_ms} request_id={request_id}"
            )
            if response is not None:
                response.headers["X-Request-ID"] = request_id
                for name, value in SECURITY_HEADERS.items():
                    response.headers.setdefault(name, value)
