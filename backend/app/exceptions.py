"""
Structured exceptions and error responses for Taskline.

Provides consistent error handling across the API with:
- Custom exception classes
- Structured error response format
- FastAPI exception handlers

Storage and timing failures carry a generic client-facing message; the
underlying cause is chained (``raise ... from exc``) and logged, never
rendered.
"""

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.logging_config import get_logger

logger = get_logger("errors")


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None  # e.g. ["body", "end_date"]
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "storage_error")
    message: str  # Human-readable message
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TasklineException(Exception):
    """Base exception for all Taskline errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(TasklineException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(TasklineException):
    """Request validation error."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=422,
            details=details,
        )


class ConflictError(TasklineException):
    """Resource already exists."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="conflict",
            status_code=status.HTTP_409_CONFLICT,
        )


class InvalidCredentialsError(TasklineException):
    """Login attempt with an unknown email or wrong password."""

    def __init__(self):
        super().__init__(
            message="Incorrect email or password",
            error_code="invalid_credentials",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class CredentialError(TasklineException):
    """The password hashing primitive failed."""

    def __init__(self, operation: str):
        super().__init__(
            message="Could not process credentials",
            error_code="credential_error",
        )
        self.operation = operation


class StorageError(TasklineException):
    """A query or statement against the database failed."""

    def __init__(self, operation: str, error_code: str = "storage_error"):
        super().__init__(
            message="The request could not be completed",
            error_code=error_code,
        )
        self.operation = operation


class AggregationError(StorageError):
    """Loading projects or tasks failed. No partial result is returned."""

    def __init__(self, operation: str):
        super().__init__(operation, error_code="aggregation_error")


class TimingError(TasklineException):
    """Completing a task or computing its elapsed time failed."""

    def __init__(self, operation: str, task_id: Optional[int] = None):
        super().__init__(
            message="The task timing could not be updated",
            error_code="timing_error",
        )
        self.operation = operation
        self.task_id = task_id


class TimestampParseError(TimingError):
    """A stored task timestamp is missing or malformed."""

    def __init__(self, task_id: Optional[int], field: str, value: Optional[str]):
        super().__init__(f"parse {field}", task_id=task_id)
        self.field = field
        self.value = value

    def __str__(self) -> str:
        return f"task {self.task_id}: cannot parse {self.field}={self.value!r}"


# =============================================================================
# Exception Handlers
# =============================================================================

async def taskline_exception_handler(request: Request, exc: TasklineException) -> JSONResponse:
    """Handle TasklineException and return structured response."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": None,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TasklineException, taskline_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
