"""HTTP middleware: request logging and response security headers."""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from courtease.config import settings

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0

# Paths whose traffic is logged at INFO: provider callbacks and scheduler runs.
AUDITED_PATH_PREFIXES = ("/payments/", "/jobs/")

QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome and latency."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(time.time_ns())
        request.state.request_id = request_id

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"

        path = request.url.path
        if path in QUIET_PATHS:
            return response

        line = f"[{request_id}] {request.method} {path} -> {response.status_code} in {elapsed:.3f}s"
        api_path = path.removeprefix(settings.api_prefix)
        if elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request {line}")
        elif api_path.startswith(AUDITED_PATH_PREFIXES) or response.status_code >= 500:
            logger.info(line)
        else:
            logger.debug(line)

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Hardening headers; API responses carry payment tokens so are never cached."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith(settings.api_prefix):
            response.headers["Cache-Control"] = "no-store"

        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
