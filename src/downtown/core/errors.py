"""Application error taxonomy and its mapping onto HTTP responses.

Services raise subclasses of :class:`AppError`; the handlers registered in
:func:`register_exception_handlers` render every failure as a JSON body of
the form ``{"message": ...}``. Server-side failures (5xx) are logged with
their traceback and answered with a generic message only.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "internal server error"


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = GENERIC_SERVER_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRequest(AppError):
    """Malformed input or a cross-entity mismatch."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid request"


class NotFound(AppError):
    """Entity absent, filtered out by a block list or owned by someone else."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "not found"


class PostNotFound(NotFound):
    def __init__(self, post_id: int) -> None:
        super().__init__(f"post {post_id} not found")
        self.post_id = post_id


class CommentNotFound(NotFound):
    def __init__(self, comment_id: int) -> None:
        super().__init__(f"comment {comment_id} not found")
        self.comment_id = comment_id


class UserNotFound(NotFound):
    def __init__(self, key: int | str) -> None:
        super().__init__(f"user {key} not found")
        self.key = key


class Blocked(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "access to this content is blocked"


class TokenError(AppError):
    """Generic token failure: bad signature, algorithm, issuer or claims."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "could not validate credentials"


class TokenNotExists(TokenError):
    message = "authorization token is missing"


class InvalidToken(TokenError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid token"


class TokenExpired(TokenError):
    message = "token has expired"


class VerificationError(AppError):
    """Phone verification code missing or mismatched."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "verification failed"


class VerificationExpired(VerificationError):
    message = "verification code has expired"


class TooManyRequests(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "too many requests"


class DatabaseError(AppError):
    """Relational store failure."""


class MessageSendError(AppError):
    """SMS vendor rejected the message or could not be reached."""

    def __init__(self, code: int, vendor_message: str) -> None:
        super().__init__()
        self.code = code
        self.vendor_message = vendor_message

    def __str__(self) -> str:
        return f"message send failed (code={self.code}): {self.vendor_message}"


class StorageError(AppError):
    """Object storage upload or delete failed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__()
        self.key = key
        self.reason = reason

    def __str__(self) -> str:
        return f"object storage failure for {self.key}: {self.reason}"


def _message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _message_response(exc.status_code, GENERIC_SERVER_MESSAGE)
    return _message_response(exc.status_code, exc.message)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("%s %s database failure", request.method, request.url.path, exc_info=exc)
    return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_MESSAGE)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    else:
        message = "validation error"
    return _message_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s unhandled error", request.method, request.url.path, exc_info=exc)
    return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to the application."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
