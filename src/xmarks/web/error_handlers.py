from typing import cast

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from xmarks.errors import ErrorCode, UserError

logger = structlog.get_logger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with the status and code they carry."""
    error = cast(UserError, exc)
    if error.http_status >= 500:
        logger.warning("request_failed", error_type=error.code.value, status=error.http_status)
    return create_json_error_response(status_code=error.http_status, message=str(error), error_type=error.code.value)


async def request_validation_handler(_: Request, exc: Exception) -> Response:
    """Report malformed input (bad ids, missing fields) as invalid_request."""
    message = "Invalid request"
    if isinstance(exc, RequestValidationError) and exc.errors():
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request: {location}: {first.get('msg', 'invalid value')}"
    return create_json_error_response(status_code=400, message=message, error_type=ErrorCode.INVALID_REQUEST.value)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=type(exc).__name__)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
