"""
Request logging middleware.

Every request outside ``exclude_paths`` gets a request id (taken from an
incoming ``X-Request-ID`` header or generated), which is bound into the
structlog context together with the ``X-User-ID`` caller and echoed back
on the response.
"""

import time
import uuid
from typing import Callable, Iterable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logging_config import log_api_request, set_request_context

USER_ID_HEADER = "X-User-ID"
REQUEST_ID_HEADER = "X-Request-ID"
ANONYMOUS_USER = "anonymous"

DEFAULT_EXCLUDE_PATHS = ("/health", "/docs", "/openapi.json")


def extract_user_id(request: Request) -> str:
    """Caller identity forwarded by the auth layer, or ``anonymous``."""
    return request.headers.get(USER_ID_HEADER) or ANONYMOUS_USER


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access logging with request ids."""

    def __init__(self, app, exclude_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        # structlog directly: middleware is built before the lifespan configures logging
        self.logger = structlog.get_logger("api.middleware")
        self.exclude_paths = frozenset(exclude_paths or DEFAULT_EXCLUDE_PATHS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.exclude_paths:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        user_id = extract_user_id(request)
        set_request_context(request_id=request_id, user_id=user_id)
        log = self.logger.bind(method=request.method, path=path)

        log.debug("request_received", query=str(request.query_params), client=self._client_host(request))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "request_failed",
                error_type=type(e).__name__,
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2)
            )
            raise

        duration = time.perf_counter() - started
        if response.status_code >= 500:
            log.warning("request_completed_with_error", status_code=response.status_code)
        log_api_request(request.method, path, response.status_code, duration, user_id=user_id)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _client_host(request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
