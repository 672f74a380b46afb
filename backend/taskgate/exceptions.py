"""
Structured exceptions and error responses for Taskgate.

The governance engine raises these; the HTTP layer maps them to
responses through the registered exception handlers.
"""

from typing import Any, Dict, Optional, List
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None  # Location of error (e.g., ["body", "title"])
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "capacity_exceeded")
    message: str  # Human-readable message
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskgateException(Exception):
    """Base exception for all Taskgate errors."""

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


class ValidationError(TaskgateException):
    """Malformed or out-of-range input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = None
        if field:
            details = [{"loc": ["body", field], "msg": message, "type": "value_error"}]
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )
        self.field = field


class NotFoundError(TaskgateException):
    """Referenced project, task, subtask or user does not exist."""

    def __init__(self, resource: str, resource_id: Any = None, message: Optional[str] = None):
        super().__init__(
            message=message or f"{resource} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class PermissionDeniedError(TaskgateException):
    """Actor lacks the capability required for the operation."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            error_code="permission_denied",
            status_code=status.HTTP_403_FORBIDDEN,
        )


class CapacityError(TaskgateException):
    """Assignee count would leave its allowed range."""

    def __init__(self, message: str, count: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="capacity_exceeded",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.count = count


class ConflictError(TaskgateException):
    """Operation conflicts with the current state (immutable field, archived parent)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="conflict",
            status_code=status.HTTP_409_CONFLICT,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def taskgate_exception_handler(request: Request, exc: TaskgateException) -> JSONResponse:
    """Handle TaskgateException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TaskgateException, taskgate_exception_handler)
