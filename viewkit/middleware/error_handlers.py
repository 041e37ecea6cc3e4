"""Exception handlers that answer in the format the client asked for.

Errors are rendered as a small HTML page, plain text or the JSON envelope
``{"error": {"code", "message", "details"}}``, picked from the Accept header.
JSON is used when the header names none of them or only ``*/*``.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from markupsafe import escape

from viewkit.exceptions import ErrorCode, ViewException
from viewkit.logging_config import get_logger, log_with_context
from viewkit.mime import get_mime_registry

logger = get_logger(__name__)

ERROR_FORMATS = ("json", "html", "text")


def error_format(request: Request) -> str:
    """Best error body format for the request's Accept header."""
    for format in get_mime_registry().formats_for_accept(request.headers.get("accept")):
        if format in ERROR_FORMATS:
            return format
    return "json"


def error_response(request: Request, status_code: int, error: dict[str, Any]) -> Response:
    format = error_format(request)
    if format == "html":
        body = f"<h1>{status_code} {escape(error['code'])}</h1>\n<p>{escape(error['message'])}</p>\n"
        return HTMLResponse(body, status_code=status_code)
    if format == "text":
        return PlainTextResponse(f"{error['code']}: {error['message']}\n", status_code=status_code)
    return JSONResponse(status_code=status_code, content={"error": error})


async def view_exception_handler(request: Request, exc: ViewException) -> Response:
    """Answer rendering exceptions with their HTTP status code."""
    log_with_context(
        logger,
        "warning",
        "View error",
        error_code=exc.code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        url=str(request.url),
        event_type="view_error",
    )
    return error_response(
        request,
        exc.status_code,
        {"code": exc.code.value, "message": exc.message, "details": exc.details},
    )


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    log_with_context(
        logger,
        "error",
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        url=str(request.url),
        event_type="unhandled_error",
    )
    logger.error("Exception traceback:", exc_info=exc)

    # Internal details stay in the log
    return error_response(
        request,
        500,
        {"code": ErrorCode.INTERNAL_ERROR.value, "message": "Internal server error", "details": {}},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ViewException, view_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
