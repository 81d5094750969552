import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from tradetrack.logging_context import get_request_logger, new_request_id, set_request_id

logger = get_request_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id to every request and logs method, path, status and latency."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or new_request_id()
        request.state.request_id = request_id
        set_request_id(request_id)

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "%s %s failed after %.2fms", request.method, request.url.path, duration_ms
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id
        logger.info(
            "%s %s -> %d (%.2fms)",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response
