"""Project-wide DRF exception handler.

Every error leaving the API has the same envelope::

    {"error": "<human readable message>"}

Domain exceptions are translated by the views themselves; this handler
reshapes DRF's own exceptions (authentication, permissions, validation,
throttling) and converts anything unexpected into a logged 500.
"""

from __future__ import annotations

from typing import Any

import structlog
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = structlog.get_logger(__name__)

AUTHENTICATION_REQUIRED = "Authentication required"
INTERNAL_ERROR = "Internal server error"


def error_response(message: str, status_code: int) -> Response:
    """Build a response carrying the standard error envelope."""
    return Response({"error": message}, status=status_code)


def flatten_error_detail(detail: Any) -> str:
    """Collapse DRF's nested error detail into a single message."""
    if isinstance(detail, dict):
        if "detail" in detail:
            return flatten_error_detail(detail["detail"])
        if "error" in detail:
            return flatten_error_detail(detail["error"])
        parts = []
        for field, value in detail.items():
            message = flatten_error_detail(value)
            if field == "non_field_errors":
                parts.append(message)
            else:
                parts.append(f"{field}: {message}")
        return "; ".join(parts)
    if isinstance(detail, (list, tuple)):
        return " ".join(flatten_error_detail(item) for item in detail)
    return str(detail)


def api_exception_handler(exc: Exception, context: dict) -> Response:
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "api.unhandled_exception",
            view=view.__class__.__name__ if view else None,
            error_type=exc.__class__.__name__,
        )
        set_rollback()
        return error_response(INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, NotAuthenticated):
        response.data = {"error": AUTHENTICATION_REQUIRED}
    else:
        response.data = {"error": flatten_error_detail(response.data)}
    return response
