"""Request ID + access log middleware.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header (for distributed tracing) or a fresh UUID. It is bound to
structlog's contextvars so every log line emitted while handling the
request carries it (credentials.created, auth.login_failed, ...), and
it is echoed back in the response header.

One "http.request" line is logged per request with method, path,
status and duration. Bodies are never logged: they hold passwords.
Unhandled exceptions are answered here with a generic 500 so the
response still carries the request ID.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate/propagate a request ID and log the request outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            # Unhandled app errors still get the request ID header
            logger.exception("authcore.unhandled_error", path=request.url.path)
            response = JSONResponse(status_code=500, content={"message": "Server error"})
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
