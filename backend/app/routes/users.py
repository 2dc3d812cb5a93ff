"""
OwnerGate Backend: User Route Handlers
=======================================

What:  Endpoints over the User entity.
Who:   Admin user-management pages (all users) and account settings (own record).

Rules applied by AccessControlService.users:
    - Non-admins only ever see or update their own row; the owning key is `id`.
    - Non-admins cannot change `role`.
    - Creating and deleting users is admin-only.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.exceptions import ValidationError
from app.routes.dependencies import get_access_control
from app.routes.records import ERROR_RESPONSES, search_clause
from app.schemas.records import Role, UserCreate, UserResponse, UserUpdate
from app.services.access_control import AccessControlService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def user_filters(
    role: Optional[Role] = Query(default=None),
    email: Optional[str] = Query(default=None, max_length=255),
    search: Optional[str] = Query(default=None, max_length=100, description="Matches name or email"),
) -> Dict[str, Any]:
    where: Dict[str, Any] = search_clause(search, "name", "email")
    if role:
        where["role"] = role
    if email:
        where["email"] = {"equals": email, "mode": "insensitive"}
    return where


@router.get("", response_model=List[UserResponse], responses=ERROR_RESPONSES)
async def list_users(
    response: Response,
    where: Dict[str, Any] = Depends(user_filters),
    service: AccessControlService = Depends(get_access_control),
) -> List[Any]:
    """Admins get every matching user; everyone else gets at most their own row."""
    users = await service.find_users(where or None)
    response.headers["X-Total-Count"] = str(len(users))
    return users


@router.post("", status_code=201, response_model=UserResponse, responses=ERROR_RESPONSES)
async def create_user(
    body: UserCreate,
    service: AccessControlService = Depends(get_access_control),
) -> Any:
    user = await service.create_user(body.model_dump(exclude_none=True))
    logger.info("User %s created by admin %s", user.id, service.caller_id)
    return user


@router.get("/{user_id}", response_model=UserResponse, responses=ERROR_RESPONSES)
async def get_user(
    user_id: str,
    service: AccessControlService = Depends(get_access_control),
) -> Any:
    return await service.find_user({"id": user_id})


@router.patch("/{user_id}", response_model=UserResponse, responses=ERROR_RESPONSES)
async def update_user(
    user_id: str,
    body: UserUpdate,
    service: AccessControlService = Depends(get_access_control),
) -> Any:
    data = body.model_dump(exclude_unset=True)
    if not data:
        raise ValidationError(message="No fields to update")
    return await service.update_user({"id": user_id}, data)


@router.delete("/{user_id}", response_model=UserResponse, responses=ERROR_RESPONSES)
async def delete_user(
    user_id: str,
    service: AccessControlService = Depends(get_access_control),
) -> Any:
    return await service.delete_user({"id": user_id})
