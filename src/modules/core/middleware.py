import re
import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Client-supplied ids end up in every log line; anything else is replaced.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware:
    """Middleware that extracts or generates a correlation ID for each request.

    Reads the X-Request-ID header from the incoming request; a missing or
    malformed value is replaced by a new UUID4.  The ID is stored in a
    ContextVar and bound into structlog's contextvars so every log line
    carries it, and is returned to the client via the X-Request-ID
    response header.  Both bindings are cleared once the response is built.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        incoming = request.META.get("HTTP_X_REQUEST_ID", "")
        cid = incoming if _VALID_REQUEST_ID.match(incoming) else str(uuid.uuid4())
        token = correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid, method=request.method, path=request.path
        )
        try:
            started = time.monotonic()
            logger.info("request.started")

            response = self.get_response(request)

            logger.info(
                "request.finished",
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 2),
            )
        finally:
            # Nothing bound for this request may leak into later log lines.
            structlog.contextvars.clear_contextvars()
            correlation_id_var.reset(token)

        response["X-Request-ID"] = cid
        return response
