"""FastAPI middleware for metrics, correlation IDs and request logging."""

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from backstage.core.logging import (
    clear_correlation_id,
    log_error,
    log_info,
    set_correlation_id,
)
from backstage.core.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
    HTTP_REQUESTS_TOTAL,
)

# Paths polled by infrastructure; kept out of request logs
QUIET_PATHS = frozenset({"/health", "/metrics"})

# Shared label for requests no route matched
UNMATCHED_ENDPOINT = "unmatched"

_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def endpoint_label(request: Request) -> str:
    """Metric label for a request: the route template when one matched.

    ``/api/v1/users/singleUser/42`` is reported as
    ``/api/v1/users/singleUser/{user_id}``. Every unmatched path shares
    :data:`UNMATCHED_ENDPOINT` so clients cannot mint new series.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request counts, latency and in-flight requests.

    The route is only known after the request has been handled, so the
    in-flight gauge is labelled by method alone.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        in_progress = HTTP_REQUESTS_IN_PROGRESS.labels(method=method)
        in_progress.inc()

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            endpoint = endpoint_label(request)
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=endpoint).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(
                method=method, endpoint=endpoint, status_code=str(status_code)
            ).inc()
            in_progress.dec()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID to the request context and echoes it back.

    A client-supplied ``X-Correlation-ID`` is reused when it is a short
    token of safe characters; otherwise a fresh UUID is used.
    """

    CORRELATION_ID_HEADER = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        supplied = request.headers.get(self.CORRELATION_ID_HEADER, "")
        correlation_id = supplied if _CORRELATION_ID.match(supplied) else str(uuid.uuid4())
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[self.CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per completed request.

    Request bodies are never logged: they carry passwords and passcodes.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("backstage.requests")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log_error(
                self.logger,
                "Request failed",
                exception=e,
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        log_info(
            self.logger,
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            client_ip=request.client.host if request.client else None,
        )
        return response


__all__ = [
    "CorrelationIdMiddleware",
    "MetricsMiddleware",
    "RequestLoggingMiddleware",
    "UNMATCHED_ENDPOINT",
    "endpoint_label",
]
