"""
OwnerGate Backend: Admin Bootstrap
===================================

What:  Creates the first ADMIN user and prints a development session token.
Why:   Admin accounts can only be created by an admin, so the very first one
       has to be written directly through the store.
How:   `python -m app.bootstrap` creates missing tables, then calls
       ensure_admin_user() inside one committed session.

This is setup code: it deliberately talks to the DataStore, not to
AccessControlService.
"""

import asyncio
import logging
import sys
from typing import Any

from app.config import settings
from app.database import async_session_factory, create_all_tables, dispose_engine
from app.models.user import ROLE_ADMIN
from app.services.identity import issue_token
from app.services.store import DataStore

logger = logging.getLogger(__name__)


async def ensure_admin_user(store: DataStore, email: str, name: str) -> Any:
    """Return an existing ADMIN user, or create one with the given email and name."""
    existing = await store.user.find_many({"role": ROLE_ADMIN})
    if existing:
        logger.info("Admin user already exists: %s", existing[0].email)
        return existing[0]

    admin = await store.user.create({"email": email, "name": name, "role": ROLE_ADMIN})
    logger.info("Admin user created: %s (%s)", admin.email, admin.id)
    return admin


async def run() -> str:
    await create_all_tables()
    async with async_session_factory() as session:
        async with session.begin():
            admin = await ensure_admin_user(
                DataStore.for_session(session),
                email=settings.bootstrap_admin_email,
                name=settings.bootstrap_admin_name,
            )
    await dispose_engine()
    return issue_token(admin.id, role=ROLE_ADMIN, email=admin.email, name=admin.name)


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        token = asyncio.run(run())
    except Exception:
        logger.exception("Admin bootstrap failed")
        return 1
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
