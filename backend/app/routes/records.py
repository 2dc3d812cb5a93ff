"""
OwnerGate Backend: Owned-Record Route Handlers
===============================================

What:  CRUD endpoints for projects, client profiles and invoices.
Why:   The three entities share one ownership protocol, so one router factory
       serves all of them instead of three hand-copied modules.
How:   build_record_router() wires list/create/get/update/delete handlers to
       the entity's OwnershipScopedRepository on the per-request service.

Routes (per entity, e.g. prefix="projects"):
    GET    /api/projects             list visible records (filters per entity)
    POST   /api/projects             create; owner is always the caller
    GET    /api/projects/{id}        one record, 403 when missing or not owned
    PATCH  /api/projects/{id}        partial update
    DELETE /api/projects/{id}        delete, returns the deleted record
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from app.exceptions import ValidationError
from app.routes.dependencies import get_access_control
from app.schemas.common import ErrorResponse
from app.schemas.records import (
    ClientProfileCreate,
    ClientProfileResponse,
    ClientProfileUpdate,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdate,
)
from app.services.access_control import AccessControlService

logger = logging.getLogger(__name__)

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"description": "Invalid filter or payload", "model": ErrorResponse},
    401: {"description": "Authentication required", "model": ErrorResponse},
    403: {"description": "Access denied (record missing or not owned)", "model": ErrorResponse},
}


def search_clause(search: Optional[str], *fields: str) -> Dict[str, Any]:
    """Case-insensitive substring match across several fields, as one OR group."""
    if not search:
        return {}
    return {
        "OR": [{field: {"contains": search, "mode": "insensitive"}} for field in fields]
    }


# ── Per-entity filter dependencies ────────────────────────────────────────

def project_filters(
    status: Optional[ProjectStatus] = Query(default=None, description="Exact project status"),
    search: Optional[str] = Query(default=None, max_length=100, description="Matches name or description"),
) -> Dict[str, Any]:
    where: Dict[str, Any] = search_clause(search, "name", "description")
    if status:
        where["status"] = status
    return where


def client_profile_filters(
    search: Optional[str] = Query(default=None, max_length=100, description="Matches name, email or company"),
) -> Dict[str, Any]:
    return search_clause(search, "name", "email", "company")


def invoice_filters(
    status: Optional[InvoiceStatus] = Query(default=None, description="Exact invoice status"),
    client_id: Optional[str] = Query(default=None, max_length=64, description="Owning client profile"),
) -> Dict[str, Any]:
    where: Dict[str, Any] = {}
    if status:
        where["status"] = status
    if client_id:
        where["client_id"] = client_id
    return where


# ── Router factory ────────────────────────────────────────────────────────

def build_record_router(
    *,
    entity: str,
    prefix: str,
    tag: str,
    response_model: Type[BaseModel],
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
    filters: Callable[..., Dict[str, Any]],
) -> APIRouter:
    router = APIRouter(prefix=f"/api/{prefix}", tags=[tag])
    label = entity.replace("_", " ")

    @router.get(
        "",
        response_model=List[response_model],
        responses=ERROR_RESPONSES,
        summary=f"List visible {label} records",
    )
    async def list_records(
        response: Response,
        where: Dict[str, Any] = Depends(filters),
        service: AccessControlService = Depends(get_access_control),
    ) -> List[Any]:
        records = await service.repository(entity).find_many(where or None)
        response.headers["X-Total-Count"] = str(len(records))
        return records

    @router.post(
        "",
        status_code=201,
        response_model=response_model,
        responses=ERROR_RESPONSES,
        summary=f"Create a {label} owned by the caller",
    )
    async def create_record(
        body: create_model,
        service: AccessControlService = Depends(get_access_control),
    ) -> Any:
        return await service.repository(entity).create(body.model_dump(exclude_none=True))

    @router.get(
        "/{record_id}",
        response_model=response_model,
        responses=ERROR_RESPONSES,
        summary=f"Get one {label}",
    )
    async def get_record(
        record_id: str,
        response: Response,
        service: AccessControlService = Depends(get_access_control),
    ) -> Any:
        record = await service.repository(entity).find_one({"id": record_id})
        # Owner-specific data must never land in a shared cache
        response.headers["Cache-Control"] = "private, no-store"
        return record

    @router.patch(
        "/{record_id}",
        response_model=response_model,
        responses=ERROR_RESPONSES,
        summary=f"Update a {label}",
    )
    async def update_record(
        record_id: str,
        body: update_model,
        service: AccessControlService = Depends(get_access_control),
    ) -> Any:
        data = body.model_dump(exclude_unset=True)
        if not data:
            raise ValidationError(message="No fields to update")
        return await service.repository(entity).update({"id": record_id}, data)

    @router.delete(
        "/{record_id}",
        response_model=response_model,
        responses=ERROR_RESPONSES,
        summary=f"Delete a {label}",
    )
    async def delete_record(
        record_id: str,
        service: AccessControlService = Depends(get_access_control),
    ) -> Any:
        record = await service.repository(entity).delete({"id": record_id})
        logger.info("Deleted %s %s by %s", entity, record_id, service.caller_id)
        return record

    return router


projects_router = build_record_router(
    entity="project",
    prefix="projects",
    tag="Projects",
    response_model=ProjectResponse,
    create_model=ProjectCreate,
    update_model=ProjectUpdate,
    filters=project_filters,
)

client_profiles_router = build_record_router(
    entity="client_profile",
    prefix="client-profiles",
    tag="Client Profiles",
    response_model=ClientProfileResponse,
    create_model=ClientProfileCreate,
    update_model=ClientProfileUpdate,
    filters=client_profile_filters,
)

invoices_router = build_record_router(
    entity="invoice",
    prefix="invoices",
    tag="Invoices",
    response_model=InvoiceResponse,
    create_model=InvoiceCreate,
    update_model=InvoiceUpdate,
    filters=invoice_filters,
)
