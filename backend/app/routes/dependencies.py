"""
OwnerGate Backend: Request-Scoped Dependencies
===============================================

What:  FastAPI dependencies that resolve the caller and build the access-control service.
Why:   Every request must get a fresh AccessControlService bound to its own
       identity and its own database session. Building it in a dependency
       makes that the only way routes can reach the store.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.services.access_control import AccessControlService
from app.services.identity import CallerIdentity, resolve_identity
from app.services.store import DataStore


async def get_caller_identity(request: Request) -> CallerIdentity:
    return resolve_identity(request)


async def get_access_control(
    identity: CallerIdentity = Depends(get_caller_identity),
    db: AsyncSession = Depends(get_db_session),
) -> AccessControlService:
    """New service per request; never cached, never shared between callers."""
    return AccessControlService(
        DataStore.for_session(db),
        caller_id=identity.caller_id,
        is_admin=identity.is_admin,
    )
