"""
Business errors raised by the service layer.

Each error carries the HTTP status it maps to; the handlers installed by
``register_exception_handlers`` render every error as ``{"message": ...}``.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic.core.logger import logger


class ClinicError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"


class AuthenticationError(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"


class AuthorizationError(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InvalidStateError(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    message = "Operation not permitted in the current state"


class ConflictError(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


async def clinic_error_handler(request: Request, exc: ClinicError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ClinicError, clinic_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
