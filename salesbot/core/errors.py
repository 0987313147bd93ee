"""Exception handling utilities."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("salesbot.errors")

GENERIC_ERROR_MESSAGE = "Something unexpected happened. Please try again later."


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Log the failure with its request id and return a generic JSON 500."""

    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unhandled %s on %s %s [rid=%s]",
        type(exc).__name__,
        request.method,
        request.url.path,
        request_id,
    )
    content = {"error": "internal_error", "message": GENERIC_ERROR_MESSAGE}
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=500, content=content)
