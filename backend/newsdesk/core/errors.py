"""
Error taxonomy and the handlers that turn errors into JSON responses.

Every error leaves the API as ``{"message": ...}`` with the status code
carried by the exception class.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsdesk.core.logging_config import log_security_event

logger = logging.getLogger(__name__)


class NewsdeskError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(NewsdeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthorized(NewsdeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidToken(Unauthorized):
    default_message = "Could not validate credentials"


class TokenExpired(Unauthorized):
    default_message = "Token has expired"


class Forbidden(NewsdeskError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"

    def __init__(self, message: str = None, actor=None, action: str = None):
        super().__init__(message)
        self.actor = actor
        self.action = action


class NotFound(NewsdeskError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InternalError(NewsdeskError):
    pass


async def newsdesk_error_handler(request: Request, exc: NewsdeskError):
    if isinstance(exc, InternalError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": InternalError.default_message},
        )

    if isinstance(exc, Forbidden):
        log_security_event(
            event_type="access.denied",
            message=exc.message,
            level=logging.WARNING,
            actor=exc.actor,
            request=request,
            event_category="authorization",
            action=exc.action,
        )

    headers = None
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as 400 with per-field details."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    log_security_event(
        event_type="rate_limit.exceeded",
        message=f"Rate limit exceeded: {exc.detail}",
        level=logging.WARNING,
        request=request,
        event_category="abuse",
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": f"Rate limit exceeded: {exc.detail}"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": InternalError.default_message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NewsdeskError, newsdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
