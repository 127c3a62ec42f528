"""
Request logging middleware.

Each request gets a request id (taken from the X-Request-ID header when the
caller sends one) bound into structlog's context variables, so every log
line emitted while serving the request carries it. The id is echoed back
in the response headers.

Only method, path, status and duration are logged. Request and response
bodies are never logged, since they carry passwords, tokens and full card
numbers.
"""

import time
import uuid
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request completion and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        log = logger.bind(method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "request_failed",
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        log.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
