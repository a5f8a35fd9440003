from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.error_codes import (
    EMAIL_IN_USE,
    USERNAME_IN_USE,
    UNKNOWN_USER,
    INVALID_PASSWORD,
    SELF_FOLLOW_FORBIDDEN,
    MISSING_CREDENTIALS,
    INVALID_CREDENTIALS,
    MISSING_KEYS,
    INVALID_FIELD,
    TOKEN_GENERATION_FAILED,
    DATABASE_ERROR,
)

logger = logging.getLogger("uvicorn.error")


class ServiceError(Exception):
    """Domain failure raised by the services and translated into a response by the handlers."""
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "request failed"
    error_code: str = None

    def __init__(self, detail: str = None, status_code: int = None, error_code: str = None, headers: dict = None):
        if detail is not None:
            self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.headers = headers
        super().__init__(self.detail)


class EmailInUseError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    detail = "email in use"
    error_code = EMAIL_IN_USE


class UsernameInUseError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    detail = "username in use"
    error_code = USERNAME_IN_USE


class UnknownUserError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "unknown user"
    error_code = UNKNOWN_USER


class InvalidPasswordError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "invalid password"
    error_code = INVALID_PASSWORD


class SelfFollowForbiddenError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "user cannot follow self"
    error_code = SELF_FOLLOW_FORBIDDEN


class MissingCredentialsError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "missing credentials"
    error_code = MISSING_CREDENTIALS


class InvalidCredentialsError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "invalid credentials"
    error_code = INVALID_CREDENTIALS


class MissingFieldsError(ServiceError):
    detail = "missing keys"
    error_code = MISSING_KEYS


class InvalidFieldError(ServiceError):
    error_code = INVALID_FIELD

    def __init__(self, field: str):
        self.field = field
        super().__init__(detail=f"invalid {field}")


class TokenGenerationError(ServiceError):
    """Every generated API token collided with an issued one"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "could not issue api token"
    error_code = TOKEN_GENERATION_FAILED


class StoreError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "An unexpected error occurred. Please try again later."
    error_code = DATABASE_ERROR


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a domain failure as {"error": ..., "error_code": ...}."""
    if exc.status_code >= 500:
        logger.error(f"Service error on {request.url}: {exc.detail}")
    else:
        logger.info(f"Rejected request on {request.url}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "error_code": exc.error_code
        },
        headers=exc.headers or {},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors and return a structured JSON response."""
    logger.error(f"Validation error on {request.url}: {exc.errors()}")

    errors = exc.errors()
    # Sanitize un-serializable objects in ctx
    for error in errors:
        ctx = error.get("ctx")
        if ctx and isinstance(ctx.get("error"), Exception):
            ctx["error"] = str(ctx["error"])

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors,
            "error": "invalid request",
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Plain HTTP errors (404 on unknown routes, 405, ...) in the same body shape."""
    logger.error(f"HTTP error on {request.url}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None) or {},
    )
