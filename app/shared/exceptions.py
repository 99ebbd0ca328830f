"""Custom exception hierarchy and handlers.

Business-rule rejections (``AppException`` subclasses) are rendered with
their own status code. Store outages surface as 503 so callers can tell
"fix your input" from "try again later".
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class InvalidStateException(ConflictException):
    """Raised when a transition is attempted from the wrong status."""

    code = "invalid_state"


class DuplicateNameException(ConflictException):
    """Raised when a session name is already used within its course."""

    code = "duplicate_name"


class ForbiddenException(AppException):
    """Raised when actor role or ownership does not allow the operation."""

    status_code = 403
    code = "forbidden"


class AuthenticationException(AppException):
    """Raised when credentials or tokens are not valid."""

    status_code = 401
    code = "unauthorized"


class InvalidCourseException(AppException):
    code = "invalid_course"


class InvalidAssigneeException(AppException):
    code = "invalid_assignee"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class EmptyBillException(BusinessRuleException):
    code = "empty_bill"


class ValidationException(AppException):
    """Raised for malformed input that passed schema parsing."""

    status_code = 422
    code = "validation_error"


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return _error_response(exc.status_code, exc.code, exc.message)


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return _error_response(exc.status_code, "http_error", str(exc.detail))


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request parsing errors like ``ValidationException``."""
    first_error = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()))
    message = first_error.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return _error_response(422, ValidationException.code, message)


async def store_unavailable_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle lost or refused database connections."""
    logger.error("Store unavailable: %s", exc)
    return _error_response(503, "store_unavailable", "Data store is temporarily unavailable")


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return _error_response(500, "internal_error", "Internal server error")


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(OperationalError, store_unavailable_handler)
    app.add_exception_handler(InterfaceError, store_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
