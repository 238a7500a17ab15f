import time
import uuid
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware:
    """Tag each request with an ``X-Request-ID`` and echo it back.

    The delivery client sends its own ID on every poll and command, so a
    driver's action can be followed from the order store into these logs.
    Requests without one get a fresh UUID4.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=request_id,
            method=request.method,
            path=request.path,
        )
        logger.info("request_started")

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 2)

        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )
        response[REQUEST_ID_HEADER] = request_id
        return response
