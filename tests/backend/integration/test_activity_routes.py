import pytest

from app.core.errors import StorageError
from app.models.enums import UserRole, UserStatus
from app.repositories.tortoise_repo import storage_errors
from app.main import app


pytestmark = pytest.mark.asyncio


async def test_feed_is_newest_first_and_limited(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.username, admin_password)

    for name in ("Acme", "Beta", "Gamma", "Delta"):
        resp = await client.post(
            "/api/v1/organizations", json={"name": name, "type": "PHARMA_COMPANY"}, headers=headers
        )
        assert resp.status_code == 201

    feed = await client.get("/api/v1/activities", params={"limit": 3}, headers=headers)
    entries = feed.json()["data"]
    assert len(entries) == 3
    assert [e["description"] for e in entries] == [
        f"User {admin.username} created a new organization Delta",
        f"User {admin.username} created a new organization Gamma",
        f"User {admin.username} created a new organization Beta",
    ]
    assert entries[0]["user"] == {"id": admin.id, "username": admin.username, "fullName": admin.full_name}
    assert entries[0]["userId"] == admin.id

    everything = await client.get("/api/v1/activities", headers=headers)
    assert len(everything.json()["data"]) == 5  # login + four creations


async def test_feed_survives_deleted_actor(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    member, member_password = await create_user()
    await auth_header_factory(member.username, member_password)
    headers = await auth_header_factory(admin.username, admin_password)

    assert (await client.delete(f"/api/v1/users/{member.id}", headers=headers)).status_code == 200

    feed = (await client.get("/api/v1/activities", headers=headers)).json()["data"]
    member_login = next(e for e in feed if e["userId"] == member.id)
    assert member_login["action"] == "LOGIN"
    assert member_login["user"] is None


async def test_stats(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    await create_user()
    await create_user()
    await create_user(status=UserStatus.INACTIVE)
    await create_user(role=UserRole.DISTRIBUTOR_EXECUTIVE, status=UserStatus.PENDING)
    headers = await auth_header_factory(admin.username, admin_password)
    await client.post("/api/v1/organizations", json={"name": "Acme", "type": "PHARMA_COMPANY"}, headers=headers)
    await client.post("/api/v1/organizations", json={"name": "MedDist", "type": "DISTRIBUTOR"}, headers=headers)

    resp = await client.get("/api/v1/stats", headers=headers)
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["totalUsers"] == 5
    assert stats["activeUsers"] == 3
    assert stats["inactiveUsers"] == 1
    assert stats["pendingUsers"] == 1
    assert stats["pharmaCompanies"] == 1
    assert stats["distributors"] == 1
    assert stats["activeMRs"] == 2
    assert stats["activeUsersByRole"]["SUPER_ADMIN"] == 1


async def test_feed_and_stats_require_login(client):
    assert (await client.get("/api/v1/activities")).status_code == 401
    assert (await client.get("/api/v1/stats")).status_code == 401


async def test_storage_failure_is_opaque(client, create_admin, auth_header_factory, monkeypatch):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.username, admin_password)

    async def broken():
        with storage_errors("list_organizations"):
            raise OSError("connection refused by db-internal-7:5432")

    monkeypatch.setattr(app.state.repository, "list_organizations", broken)
    resp = await client.get("/api/v1/organizations", headers=headers)

    assert resp.status_code == 500
    assert resp.json() == StorageError().to_dict()
    assert "db-internal" not in resp.text
