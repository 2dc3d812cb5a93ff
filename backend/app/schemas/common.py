"""
OwnerGate Backend: Shared Response Schemas
===========================================

What:  Error, health and identity response models used across routers.
Why:   Clients parse one error shape for every endpoint.
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.records import UserResponse


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "access_denied",
            "message": "Access denied",
            "request_id": "1f0c9a2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class IdentityResponse(BaseModel):
    """Returned by GET /api/auth/me: the resolved identity and the caller's own record."""
    caller_id: str = Field(description="Authenticated caller id (token subject)")
    is_admin: bool = Field(description="Whether the admin bypass applies to this caller")
    user: Optional[UserResponse] = Field(
        default=None,
        description="The caller's user record; null when it has not been created yet",
    )
