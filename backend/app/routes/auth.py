"""
OwnerGate Backend: Session Introspection Route
===============================================

What:  GET /api/auth/me returns who the current session token says the caller is.
Who:   The frontend's route guard, which redirects anonymous visitors to sign-in
       and non-admins away from admin pages.
"""

from fastapi import APIRouter, Depends

from app.exceptions import UnauthenticatedError
from app.routes.dependencies import get_access_control, get_caller_identity
from app.schemas.common import ErrorResponse, IdentityResponse
from app.schemas.records import UserResponse
from app.services.access_control import AccessControlService
from app.services.identity import CallerIdentity

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get(
    "/me",
    response_model=IdentityResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)
async def me(
    identity: CallerIdentity = Depends(get_caller_identity),
    service: AccessControlService = Depends(get_access_control),
) -> IdentityResponse:
    if not identity.is_authenticated:
        raise UnauthenticatedError(message="Not authenticated")

    # find_many rather than find_one: a valid token whose user row was never
    # created is still a signed-in caller, just without a profile
    records = await service.find_users({"id": identity.caller_id})
    return IdentityResponse(
        caller_id=identity.caller_id,
        is_admin=identity.is_admin,
        user=UserResponse.model_validate(records[0]) if records else None,
    )
