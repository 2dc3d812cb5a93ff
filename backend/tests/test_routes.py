"""
OwnerGate Backend: API Endpoint Tests
======================================

What:  Tests for the HTTP surface over the access-control layer.
How:   httpx AsyncClient against a fresh app with the database dependency
       pointed at an in-memory SQLite engine (test_client fixture).

What we test:
    ✅ 401 for anonymous callers, with WWW-Authenticate
    ✅ 403 with the same body for missing and not-owned records
    ✅ Create ignores a supplied user_id
    ✅ Admins list and fetch everyone's records
    ✅ /api/auth/me, security headers and request IDs
"""

import pytest

USER_A = "user-a"
USER_B = "user-b"
ADMIN = "admin-1"


def without_request_id(body):
    return {key: value for key, value in body.items() if key != "request_id"}


@pytest.mark.asyncio
async def test_anonymous_list_is_rejected(test_client):
    response = await test_client.get("/api/projects")

    assert response.status_code == 401
    assert response.json()["error"] == "unauthenticated"
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_owner_crud_flow(test_client, auth_headers):
    alice = auth_headers(USER_A)

    created = await test_client.post(
        "/api/projects", json={"name": "Website", "user_id": USER_B}, headers=alice
    )
    assert created.status_code == 201
    project = created.json()
    assert project["user_id"] == USER_A
    assert project["status"] == "PLANNING"

    listed = await test_client.get("/api/projects", headers=alice)
    assert [p["id"] for p in listed.json()] == [project["id"]]
    assert listed.headers["X-Total-Count"] == "1"

    fetched = await test_client.get(f"/api/projects/{project['id']}", headers=alice)
    assert fetched.status_code == 200
    assert fetched.headers["Cache-Control"] == "private, no-store"

    updated = await test_client.patch(
        f"/api/projects/{project['id']}", json={"status": "IN_PROGRESS"}, headers=alice
    )
    assert updated.json()["status"] == "IN_PROGRESS"

    deleted = await test_client.delete(f"/api/projects/{project['id']}", headers=alice)
    assert deleted.status_code == 200
    assert deleted.json()["id"] == project["id"]

    gone = await test_client.get(f"/api/projects/{project['id']}", headers=alice)
    assert gone.status_code == 403


@pytest.mark.asyncio
async def test_foreign_and_missing_records_look_the_same(test_client, auth_headers):
    created = await test_client.post(
        "/api/invoices",
        json={"invoice_number": "INV-001", "amount": 1200.5},
        headers=auth_headers(USER_A),
    )
    invoice_id = created.json()["id"]
    bob = auth_headers(USER_B)

    foreign = await test_client.get(f"/api/invoices/{invoice_id}", headers=bob)
    missing = await test_client.get("/api/invoices/does-not-exist", headers=bob)

    assert foreign.status_code == missing.status_code == 403
    assert without_request_id(foreign.json()) == without_request_id(missing.json())


@pytest.mark.asyncio
async def test_foreign_update_and_delete_are_denied(test_client, auth_headers):
    created = await test_client.post(
        "/api/client-profiles", json={"name": "Acme"}, headers=auth_headers(USER_A)
    )
    profile_id = created.json()["id"]
    bob = auth_headers(USER_B)

    patched = await test_client.patch(
        f"/api/client-profiles/{profile_id}", json={"name": "Mine now"}, headers=bob
    )
    deleted = await test_client.delete(f"/api/client-profiles/{profile_id}", headers=bob)
    still_there = await test_client.get(
        f"/api/client-profiles/{profile_id}", headers=auth_headers(USER_A)
    )

    assert patched.status_code == 403
    assert deleted.status_code == 403
    assert still_there.json()["name"] == "Acme"


@pytest.mark.asyncio
async def test_admin_sees_all_records(test_client, auth_headers):
    for user_id, name in ((USER_A, "Alpha"), (USER_B, "Beta")):
        await test_client.post("/api/projects", json={"name": name}, headers=auth_headers(user_id))

    admin = auth_headers(ADMIN, role="ADMIN")
    listed = await test_client.get("/api/projects", headers=admin)
    bob_only = await test_client.get("/api/projects", headers=auth_headers(USER_B))

    assert sorted(p["name"] for p in listed.json()) == ["Alpha", "Beta"]
    assert [p["name"] for p in bob_only.json()] == ["Beta"]


@pytest.mark.asyncio
async def test_list_filters_and_search(test_client, auth_headers):
    alice = auth_headers(USER_A)
    await test_client.post(
        "/api/projects", json={"name": "Acme portal", "status": "COMPLETED"}, headers=alice
    )
    await test_client.post("/api/projects", json={"name": "Internal tools"}, headers=alice)
    await test_client.post(
        "/api/projects", json={"name": "ACME for Bob"}, headers=auth_headers(USER_B)
    )

    searched = await test_client.get("/api/projects", params={"search": "acme"}, headers=alice)
    by_status = await test_client.get(
        "/api/projects", params={"status": "COMPLETED"}, headers=alice
    )

    assert [p["name"] for p in searched.json()] == ["Acme portal"]
    assert [p["name"] for p in by_status.json()] == ["Acme portal"]


@pytest.mark.asyncio
async def test_empty_patch_is_rejected(test_client, auth_headers):
    alice = auth_headers(USER_A)
    created = await test_client.post("/api/projects", json={"name": "X"}, headers=alice)

    response = await test_client.patch(
        f"/api/projects/{created.json()['id']}", json={}, headers=alice
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_invoice_cannot_reference_foreign_client(test_client, auth_headers):
    alice = auth_headers(USER_A)
    bob = auth_headers(USER_B)
    bobs_client = (
        await test_client.post("/api/client-profiles", json={"name": "Bob Co"}, headers=bob)
    ).json()["id"]
    alices_client = (
        await test_client.post("/api/client-profiles", json={"name": "Alice Co"}, headers=alice)
    ).json()["id"]

    foreign = await test_client.post(
        "/api/invoices",
        json={"invoice_number": "INV-9", "amount": 10, "client_id": bobs_client},
        headers=alice,
    )
    own = await test_client.post(
        "/api/invoices",
        json={"invoice_number": "INV-10", "amount": 10, "client_id": alices_client},
        headers=alice,
    )
    repoint = await test_client.patch(
        f"/api/invoices/{own.json()['id']}", json={"client_id": bobs_client}, headers=alice
    )
    listed = await test_client.get("/api/invoices", headers=alice)

    assert foreign.status_code == 403
    assert own.status_code == 201
    assert repoint.status_code == 403
    assert [i["client_id"] for i in listed.json()] == [alices_client]

class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_admin_creates_user_and_user_reads_self(self, test_client, auth_headers):
        admin = auth_headers(ADMIN, role="ADMIN")

        created = await test_client.post(
            "/api/users", json={"id": USER_A, "email": "a@example.com", "name": "A"}, headers=admin
        )
        me = await test_client.get(f"/api/users/{USER_A}", headers=auth_headers(USER_A))

        assert created.status_code == 201
        assert me.json()["email"] == "a@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, test_client, auth_headers):
        admin = auth_headers(ADMIN, role="ADMIN")
        payload = {"email": "dup@example.com", "name": "Dup"}

        first = await test_client.post("/api/users", json=payload, headers=admin)
        second = await test_client.post("/api/users", json=payload, headers=admin)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_non_admin_user_rules(self, test_client, auth_headers):
        admin = auth_headers(ADMIN, role="ADMIN")
        await test_client.post(
            "/api/users", json={"id": USER_A, "email": "a@example.com"}, headers=admin
        )
        await test_client.post(
            "/api/users", json={"id": USER_B, "email": "b@example.com"}, headers=admin
        )
        alice = auth_headers(USER_A)

        other = await test_client.get(f"/api/users/{USER_B}", headers=alice)
        promote = await test_client.patch(
            f"/api/users/{USER_A}", json={"role": "ADMIN"}, headers=alice
        )
        rename = await test_client.patch(
            f"/api/users/{USER_A}", json={"name": "Alice"}, headers=alice
        )
        create = await test_client.post(
            "/api/users", json={"email": "c@example.com"}, headers=alice
        )
        retarget = await test_client.patch(
            f"/api/users/{USER_B}", json={"name": "Mallory"}, headers=alice
        )
        listed = await test_client.get("/api/users", headers=alice)
        alice_row = await test_client.get(f"/api/users/{USER_A}", headers=alice)
        bob_row = await test_client.get(f"/api/users/{USER_B}", headers=admin)

        assert other.status_code == 403
        assert promote.status_code == 403
        assert rename.json()["name"] == "Alice"
        assert create.status_code == 403
        assert [u["id"] for u in listed.json()] == [USER_A]
        assert retarget.status_code == 403
        assert alice_row.json()["name"] == "Alice"
        assert bob_row.json()["name"] is None


class TestAuthMe:

    @pytest.mark.asyncio
    async def test_anonymous(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_token_without_user_row(self, test_client, auth_headers):
        response = await test_client.get("/api/auth/me", headers=auth_headers(USER_A))

        assert response.status_code == 200
        assert response.json() == {"caller_id": USER_A, "is_admin": False, "user": None}

    @pytest.mark.asyncio
    async def test_cookie_session(self, test_client):
        from app.services.identity import issue_token

        token = issue_token(ADMIN, role="ADMIN")
        response = await test_client.get("/api/auth/me", headers={"Cookie": f"auth-token={token}"})

        assert response.json()["is_admin"] is True


@pytest.mark.asyncio
async def test_health_and_common_headers(test_client):
    response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"] == "trace-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
