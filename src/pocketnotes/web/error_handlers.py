import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from pocketnotes.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    UnauthorizedError,
    UserError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(request: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes.

    Only the class-level public message reaches the client; the detailed
    message goes to the log.
    """
    if isinstance(exc, UnauthorizedError):
        status_code = 401
        error_type = "unauthorized"
    elif isinstance(exc, ForbiddenError):
        status_code = 403
        error_type = "forbidden"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    elif isinstance(exc, ConflictError):
        status_code = 409
        error_type = "conflict"
    elif isinstance(exc, PayloadTooLargeError):
        status_code = 413
        error_type = "payload_too_large"
    else:
        status_code = 400
        error_type = "bad_request"

    logger.info("user_error", path=request.url.path, status_code=status_code, detail=str(exc))
    message = exc.public_message if isinstance(exc, UserError) else "Bad request"
    return create_json_error_response(status_code=status_code, message=message, error_type=error_type)


async def request_validation_error_handler(request: Request, exc: Exception) -> Response:
    """Malformed request bodies get the same generic 400 as ValidationError."""
    logger.info("request_validation_error", path=request.url.path, detail=str(exc))
    return create_json_error_response(
        status_code=400, message=ValidationError.public_message, error_type="validation_error"
    )


async def http_exception_handler(_: Request, exc: Exception) -> Response:
    """Framework-raised HTTP errors (unknown route, wrong method) in the common error format."""
    status_code = exc.status_code if isinstance(exc, StarletteHTTPException) else 500
    if status_code == 404:
        return create_json_error_response(status_code=404, message=NotFoundError.public_message, error_type="not_found")
    return create_json_error_response(status_code=status_code, message="Request failed", error_type="http_error")


async def identity_provider_error_handler(request: Request, exc: Exception) -> Response:
    """Login round-trip failures (502)."""
    logger.warning("identity_provider_error", path=request.url.path, detail=str(exc))
    return create_json_error_response(status_code=502, message="Login failed", error_type="identity_provider_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
