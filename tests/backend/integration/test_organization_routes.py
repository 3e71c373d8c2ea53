import pytest

from app.models.enums import UserRole


pytestmark = pytest.mark.asyncio


async def test_organization_membership_flow(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.username, admin_password)

    org_resp = await client.post(
        "/api/v1/organizations", json={"name": "Acme Pharma", "type": "PHARMA_COMPANY"}, headers=headers
    )
    assert org_resp.status_code == 201
    org = org_resp.json()["data"]
    assert org["name"] == "Acme Pharma"
    assert org["type"] == "PHARMA_COMPANY"

    user_resp = await client.post(
        "/api/v1/users",
        json={
            "username": "acme_rep",
            "password": "Member#123",
            "fullName": "Acme Rep",
            "email": "rep@acme.example.com",
            "role": "MEDICAL_REPRESENTATIVE",
            "organizationId": org["id"],
        },
        headers=headers,
    )
    assert user_resp.status_code == 201
    assert user_resp.json()["data"]["organizationId"] == org["id"]

    members = await client.get(f"/api/v1/organizations/{org['id']}/users", headers=headers)
    assert members.status_code == 200
    assert [u["username"] for u in members.json()["data"]] == ["acme_rep"]


async def test_organization_crud(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.username, admin_password)

    listing = await client.get("/api/v1/organizations", headers=headers)
    assert [o["type"] for o in listing.json()["data"]] == ["SYSTEM"]

    created = await client.post(
        "/api/v1/organizations", json={"name": "MedDist", "type": "DISTRIBUTOR"}, headers=headers
    )
    org_id = created.json()["data"]["id"]
    member, _ = await create_user(organization_id=org_id)

    renamed = await client.put(f"/api/v1/organizations/{org_id}", json={"name": "MedDist West"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["data"] == {"id": org_id, "name": "MedDist West", "type": "DISTRIBUTOR"}

    detail = await client.get(f"/api/v1/organizations/{org_id}", headers=headers)
    assert detail.json()["data"]["name"] == "MedDist West"

    deleted = await client.delete(f"/api/v1/organizations/{org_id}", headers=headers)
    assert deleted.status_code == 200

    gone = await client.get(f"/api/v1/organizations/{org_id}", headers=headers)
    assert gone.status_code == 404
    assert gone.json()["error"]["code"] == "ORGANIZATION_NOT_FOUND"

    # The member keeps pointing at the deleted organization
    still_there = await client.get(f"/api/v1/users/{member.id}", headers=headers)
    assert still_there.json()["data"]["organizationId"] == org_id

    assert (await client.delete(f"/api/v1/organizations/{org_id}", headers=headers)).status_code == 404
    assert (await client.get(f"/api/v1/organizations/{org_id}/users", headers=headers)).status_code == 404


async def test_organization_validation(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.username, admin_password)

    bad_type = await client.post("/api/v1/organizations", json={"name": "X", "type": "HOSPITAL"}, headers=headers)
    assert bad_type.status_code == 400

    no_name = await client.post("/api/v1/organizations", json={"type": "DISTRIBUTOR"}, headers=headers)
    assert no_name.status_code == 400

    null_name = await client.put("/api/v1/organizations/1", json={"name": None}, headers=headers)
    assert null_name.status_code == 400


async def test_only_admin_roles_manage_organizations(client, create_user, auth_header_factory):
    rsm, password = await create_user(role=UserRole.REGIONAL_SALES_MANAGER)
    headers = await auth_header_factory(rsm.username, password)

    assert (await client.get("/api/v1/organizations", headers=headers)).status_code == 200
    denied = await client.post(
        "/api/v1/organizations", json={"name": "Acme", "type": "PHARMA_COMPANY"}, headers=headers
    )
    assert denied.status_code == 403
    assert (await client.delete("/api/v1/organizations/1", headers=headers)).status_code == 403
    assert (await client.get("/api/v1/organizations")).status_code == 401
