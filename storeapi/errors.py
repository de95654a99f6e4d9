"""
Error taxonomy and exception handlers.

Every failure leaves the API as {"success": false, "message": ...} with the
matching HTTP status. Internal details (tracebacks, storage errors) are
logged, never returned.
"""
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storeapi.base_microservice import ApiResponse, BaseMicroservice

error_service = BaseMicroservice("errors")


class GateRejection(Exception):
    """Terminal rejection of the current request."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(GateRejection):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class MissingAuthentication(Unauthenticated):
    default_message = "Authentication required"


class Forbidden(GateRejection):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(GateRejection):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class ValidationFailed(GateRejection):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class ServerError(GateRejection):
    pass


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationFailed.default_message
    err = errors[0]
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    msg = err.get("msg", ValidationFailed.default_message)
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that translate errors into the response envelope."""

    @app.exception_handler(GateRejection)
    async def gate_rejection_handler(request: Request, exc: GateRejection):
        if isinstance(exc, ServerError):
            error_service.log_error(exc.__cause__ or exc, context=f"{request.method} {request.url.path}")
        return ApiResponse(message=exc.message, success=False, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        response = ApiResponse(message=message, success=False, status_code=exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return ApiResponse(
            message=_first_validation_message(exc),
            success=False,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        error_service.log_error(exc, context=f"{request.method} {request.url.path}")
        return ApiResponse(
            message="Server error",
            success=False,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
