import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("prompt_gateway.api")

CORRELATION_HEADER = "X-Correlation-ID"

# Streaming endpoints stay open for the lifetime of the subscription
_STREAMING_PATHS = {"/sse"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per request, tagged with a correlation ID that is echoed back."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id

        path = request.url.path
        if path in _STREAMING_PATHS:
            logger.info("%s %s -> stream opened [%s]", request.method, path, correlation_id)
            return response

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d in %.1fms [%s]",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            correlation_id,
            extra={"correlation_id": correlation_id, "status_code": response.status_code},
        )
        return response
