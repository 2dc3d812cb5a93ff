"""
OwnerGate Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for authorization, lookup and input errors.
Why:   Each failure mode maps to one HTTP status in the global handlers
       registered by main.py, without try/except blocks in every route.
How:   Each exception carries a user-safe message and an optional context dict.
       Context is logged server-side and never returned to the client.
Who:   Raised by AccessControlService, the data store and middleware.

Exception Hierarchy:
    OwnerGateError (base)
    ├── UnauthenticatedError      → 401 (no caller identity)
    ├── AccessDeniedError         → 403 (not owned, or does not exist)
    ├── NotFoundError             → 404 (admin lookup miss)
    ├── RecordNotFoundError       → 404 (store update/delete matched nothing)
    ├── ValidationError           → 400
    │   └── InvalidFilterError    → 400 (unknown filter field or operator)
    └── RateLimitExceededError    → 429

Existence leaks:
    AccessDeniedError is raised both when a record belongs to someone else
    and when it does not exist at all. The message and context are the same
    in both cases, so a non-admin caller cannot probe for other tenants' ids.
"""

from typing import Any, Dict, Optional


class OwnerGateError(Exception):
    """
    Base exception for all OwnerGate application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthenticatedError(OwnerGateError):
    """
    Raised when an operation requires a caller identity and none was resolved.

    Raised before any store call is made. Never retried; the client must
    sign in and repeat the request.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AccessDeniedError(OwnerGateError):
    """
    Raised when an authenticated non-admin caller targets records they do not own.

    Also covers the "record does not exist" case for single-record
    operations. Callers must not try to tell the two apart.
    """

    def __init__(
        self,
        entity: str = "record",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["entity"] = entity
        super().__init__(message="Access denied", context=ctx)
        self.entity = entity


class NotFoundError(OwnerGateError):
    """
    Raised when an admin looks up a record that does not exist.

    Admins can see every record, so reporting absence leaks nothing.
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


class RecordNotFoundError(OwnerGateError):
    """
    Raised by the SQLAlchemy store when an update or delete matches no row.

    This is a store error: AccessControlService lets it through unchanged.
    """

    def __init__(
        self,
        entity: str,
        where: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"No {entity} record matched the given filter",
            context={"entity": entity, "where": dict(where or {})},
        )
        self.entity = entity


class ValidationError(OwnerGateError):
    """
    Raised when client input fails a business rule.

    FastAPI already answers schema violations with 422; this covers the
    checks that only the service or store can make.
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


class InvalidFilterError(ValidationError):
    """Raised when a filter names a field or operator the store does not support."""


class RateLimitExceededError(OwnerGateError):
    """Raised when a caller exceeds the per-window request budget."""

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
