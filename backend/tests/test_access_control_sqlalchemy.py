"""
OwnerGate Backend: Access Control Integration Tests
====================================================

What:  The ownership walkthrough again, this time over SQLAlchemyEntityStore.
Why:   The fake store only understands equality filters; this confirms the
       ownership constraint survives real SQL, including OR search groups.
How:   Two users and an admin share one in-memory SQLite session.
"""

import pytest
import pytest_asyncio

from app.exceptions import AccessDeniedError, NotFoundError, UnauthenticatedError
from app.services.access_control import AccessControlService

USER_A = "user-a"
USER_B = "user-b"
ADMIN = "admin-1"


@pytest_asyncio.fixture
async def seeded_users(sql_store):
    for user_id, role in ((USER_A, "USER"), (USER_B, "USER"), (ADMIN, "ADMIN")):
        await sql_store.user.create(
            {"id": user_id, "email": f"{user_id}@example.com", "name": user_id, "role": role}
        )
    return sql_store


def service_for(store, caller_id=None, is_admin=False):
    return AccessControlService(store, caller_id=caller_id, is_admin=is_admin)


class TestProjectWalkthrough:
    """Create, read, deny, admin read and delete against the database."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, seeded_users):
        store = seeded_users
        alice = service_for(store, USER_A)
        bob = service_for(store, USER_B)
        admin = service_for(store, ADMIN, is_admin=True)

        created = await alice.create_project({"id": "p1", "name": "Website"})
        assert created.user_id == USER_A
        assert (await alice.find_project({"id": "p1"})).name == "Website"

        with pytest.raises(AccessDeniedError):
            await bob.find_project({"id": "p1"})
        assert (await admin.find_project({"id": "p1"})).user_id == USER_A

        with pytest.raises(AccessDeniedError):
            await bob.delete_project({"id": "p1"})
        assert await store.project.find_unique({"id": "p1"}) is not None

        await alice.delete_project({"id": "p1"})
        with pytest.raises(AccessDeniedError):
            await alice.find_project({"id": "p1"})
        with pytest.raises(NotFoundError):
            await admin.find_project({"id": "p1"})

    @pytest.mark.asyncio
    async def test_create_ignores_supplied_owner(self, seeded_users):
        alice = service_for(seeded_users, USER_A)

        created = await alice.create_project({"id": "p2", "name": "Mine", "user_id": USER_B})

        stored = await seeded_users.project.find_unique({"id": "p2"})
        assert created.user_id == USER_A
        assert stored.user_id == USER_A

    @pytest.mark.asyncio
    async def test_foreign_update_leaves_row_untouched(self, seeded_users):
        await service_for(seeded_users, USER_B).create_project({"id": "pb", "name": "Bob's"})

        with pytest.raises(AccessDeniedError):
            await service_for(seeded_users, USER_A).update_project({"id": "pb"}, {"name": "Hijacked"})

        assert (await seeded_users.project.find_unique({"id": "pb"})).name == "Bob's"


class TestScopedSearch:
    """Search groups never widen what a caller can see."""

    @pytest.mark.asyncio
    async def test_or_search_stays_within_owner(self, seeded_users):
        alice = service_for(seeded_users, USER_A)
        bob = service_for(seeded_users, USER_B)
        await alice.create_client_profile({"name": "Acme Corp", "email": "ops@acme.test"})
        await bob.create_client_profile({"name": "Other", "company": "ACME Holdings"})

        search = {
            "OR": [
                {"name": {"contains": "acme", "mode": "insensitive"}},
                {"company": {"contains": "acme", "mode": "insensitive"}},
            ]
        }

        assert [c.name for c in await alice.find_client_profiles(search)] == ["Acme Corp"]
        assert [c.name for c in await bob.find_client_profiles(search)] == ["Other"]
        assert len(await service_for(seeded_users, ADMIN, is_admin=True).find_client_profiles(search)) == 2

    @pytest.mark.asyncio
    async def test_filter_naming_another_owner_is_overridden(self, seeded_users):
        alice = service_for(seeded_users, USER_A)
        bob = service_for(seeded_users, USER_B)
        await alice.create_invoice({"invoice_number": "A-1", "amount": 100, "status": "SENT"})
        await bob.create_invoice({"invoice_number": "B-1", "amount": 200, "status": "SENT"})

        invoices = await alice.find_invoices({"user_id": USER_B, "status": "SENT"})

        assert [i.invoice_number for i in invoices] == ["A-1"]


class TestUsersOverSql:

    @pytest.mark.asyncio
    async def test_non_admin_sees_only_self(self, seeded_users):
        alice = service_for(seeded_users, USER_A)

        users = await alice.find_users()

        assert [u.id for u in users] == [USER_A]
        with pytest.raises(AccessDeniedError):
            await alice.find_user({"id": USER_B})

    @pytest.mark.asyncio
    async def test_admin_sees_everyone(self, seeded_users):
        users = await service_for(seeded_users, ADMIN, is_admin=True).find_users()

        assert {u.id for u in users} == {USER_A, USER_B, ADMIN}

    @pytest.mark.asyncio
    async def test_anonymous_is_rejected(self, seeded_users):
        with pytest.raises(UnauthenticatedError):
            await service_for(seeded_users).find_users()
