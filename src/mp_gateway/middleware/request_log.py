"""Request logging middleware.

Binds a short request id for the duration of the request (request.state,
the X-Request-ID header and every log record via RequestIdLogFilter), then
logs method, path, status code and latency:

    INFO [POST] /api/v1/listings/buy → 200 (41ms) client=10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.mp_common.response import (
    bind_request_id,
    current_request_id,
    new_request_id,
    reset_request_id,
)

logger = logging.getLogger("mp.request")


class RequestIdLogFilter(logging.Filter):
    """Stamp ``record.request_id`` ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id() or "-"
        return True


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Honour an upstream id so traces line up across the proxy
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        request.state.request_id = request_id
        token = bind_request_id(request_id)
        try:
            start = time.perf_counter()
            response: Response = await call_next(request)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "[%s] %s → %d (%.0fms) client=%s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.client.host if request.client else "-",
            )
        finally:
            reset_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response
