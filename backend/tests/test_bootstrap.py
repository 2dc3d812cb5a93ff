"""
OwnerGate Backend: Admin Bootstrap Tests
=========================================

What:  ensure_admin_user() creates the first admin exactly once.
"""

import pytest

from app.bootstrap import ensure_admin_user
from app.services.identity import identity_from_token, issue_token


@pytest.mark.asyncio
async def test_creates_admin_when_none_exists(sql_store):
    admin = await ensure_admin_user(sql_store, email="root@ownergate.local", name="Root")

    assert admin.role == "ADMIN"
    assert [u.email for u in await sql_store.user.find_many({"role": "ADMIN"})] == [
        "root@ownergate.local"
    ]


@pytest.mark.asyncio
async def test_is_idempotent(sql_store):
    first = await ensure_admin_user(sql_store, email="root@ownergate.local", name="Root")
    second = await ensure_admin_user(sql_store, email="other@ownergate.local", name="Other")

    assert second.id == first.id
    assert len(await sql_store.user.find_many()) == 1


@pytest.mark.asyncio
async def test_existing_admin_is_reused(sql_store):
    await sql_store.user.create({"email": "boss@ownergate.local", "role": "ADMIN"})
    await sql_store.user.create({"email": "staff@ownergate.local"})

    admin = await ensure_admin_user(sql_store, email="root@ownergate.local", name="Root")

    assert admin.email == "boss@ownergate.local"


@pytest.mark.asyncio
async def test_admin_token_grants_bypass(sql_store):
    admin = await ensure_admin_user(sql_store, email="root@ownergate.local", name="Root")

    identity = identity_from_token(issue_token(admin.id, role=admin.role))

    assert identity.caller_id == admin.id
    assert identity.is_admin is True
