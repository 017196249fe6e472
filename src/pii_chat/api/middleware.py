"""Request tracing middleware: one request id across every log line."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Bind `request_id`, method and path into the structlog context.

    An incoming X-Request-ID is reused so a client can tie its own logs to
    ours. For chat requests the "headers sent" line is logged when the
    event stream starts; exchange logs that follow carry the same id.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", duration_ms=_elapsed_ms(started))
            raise

        is_stream = response.media_type == "text/event-stream" or response.headers.get(
            "content-type", ""
        ).startswith("text/event-stream")
        logger.info(
            "Response headers sent" if is_stream else "Request completed",
            status_code=response.status_code,
            streaming=is_stream,
            duration_ms=_elapsed_ms(started),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
