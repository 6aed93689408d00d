"""Request logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Log every error response with its pad and timing.

    4xx responses are logged as warnings, 5xx as errors. The request body
    is left untouched; upload routes stream it themselves.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)

        status = response.status_code
        if status < 400:
            return response

        level = logging.ERROR if status >= 500 else logging.WARNING
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {status}",
            extra={
                "http_status": status,
                "method": request.method,
                "path": request.url.path,
                # Filled in by the router once the route matched
                "pad_id": request.path_params.get("pad_id"),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response
