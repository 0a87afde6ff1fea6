"""
Curio Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services, dependencies and the canvas client.

Exception Hierarchy:
    CurioError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── DatabaseError            → 500 Internal Server Error
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── LayoutSyncError          → client side only (canvas autosave)
"""

from typing import Any, Dict, Optional


class CurioError(Exception):
    """
    Base exception for all Curio application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CurioError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request. The context is returned to the client as
    `details`, so it must only hold client-safe values (field names,
    offending ids).

    Example response:
        {
            "error": "validation_error",
            "message": "Some cards are missing or not part of this board",
            "details": {"field": "cards", "missing": ["does-not-exist"]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(CurioError):
    """No valid session accompanies a request that requires one. HTTP 401."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(CurioError):
    """
    The caller is authenticated (or anonymous) but may not perform this action.

    HTTP: 403 Forbidden. Raised for private boards the caller cannot read and
    for writes by anyone other than the board creator.
    """

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(CurioError):
    """
    Raised when a requested resource does not exist.

    Soft-deleted boards and cards count as missing for every read path except
    the trash listings.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CurioError):
    """A unique resource (e.g. a board slug) could not be allocated. HTTP 409."""

    def __init__(
        self,
        message: str = "The resource conflicts with an existing one",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(CurioError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500. The message returned to the client is always generic; the
    driver error is logged server-side with the request id.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CurioError):
    """Raised when a client exceeds the per-IP request rate limit. HTTP 429."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class LayoutSyncError(CurioError):
    """
    A layout request from the canvas client failed.

    Carries the HTTP status (None for transport failures) so the canvas can
    turn it into a status note.
    """

    def __init__(
        self,
        message: str = "Layout sync failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
