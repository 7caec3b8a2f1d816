"""Request logging middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from evexia.utils.logging import REQUEST_ID_HEADER, request_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Time the request and log its outcome."""
        info = request_logger.start(request)
        start = time.perf_counter()
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = info.request_id
            return response
        finally:
            request_logger.finish(info, status_code, time.perf_counter() - start)
