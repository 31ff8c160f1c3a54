"""
Tests for admin triage, bulk update and dashboard endpoints.
"""

import uuid

import pytest
from httpx import AsyncClient

from qualinex.models.user import User
from qualinex.models.warranty import Warranty
from tests.helpers import auth, warranty_json


@pytest.mark.asyncio
async def test_admin_routes_reject_regular_users(client: AsyncClient, user_token: str):
    for path in ("/api/v1/admin/warranties", "/api/v1/admin/stats", "/api/v1/admin/users/admins"):
        response = await client.get(path, headers=auth(user_token))

        assert response.status_code == 403
        assert response.json()["reason"] == "forbidden_role"


@pytest.mark.asyncio
async def test_admin_routes_require_login(client: AsyncClient):
    response = await client.get("/api/v1/admin/warranties")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_lists_every_warranty(
    client: AsyncClient,
    admin_token: str,
    user_token: str,
    other_token: str,
):
    for token in (user_token, other_token):
        await client.post("/api/v1/warranties", json=warranty_json(), headers=auth(token))

    response = await client.get("/api/v1/admin/warranties", headers=auth(admin_token))

    data = response.json()["data"]
    assert data["pagination"]["total"] == 2
    assert data["pagination"]["limit"] == 20


@pytest.mark.asyncio
async def test_admin_filters_unassigned_and_owner(
    client: AsyncClient,
    admin_token: str,
    admin_user: User,
    regular_user: User,
    user_warranty: Warranty,
    other_token: str,
):
    await client.post("/api/v1/warranties", json=warranty_json(), headers=auth(other_token))
    await client.put(
        f"/api/v1/admin/warranties/{user_warranty.id}/assign",
        json={"assignedTo": str(admin_user.id)},
        headers=auth(admin_token),
    )

    unassigned = await client.get(
        "/api/v1/admin/warranties",
        params={"unassigned": "true"},
        headers=auth(admin_token),
    )
    by_owner = await client.get(
        "/api/v1/admin/warranties",
        params={"owner": str(regular_user.id)},
        headers=auth(admin_token),
    )
    by_assignee = await client.get(
        "/api/v1/admin/warranties",
        params={"assignedTo": str(admin_user.id)},
        headers=auth(admin_token),
    )
    mine = await client.get("/api/v1/admin/warranties/assigned", headers=auth(admin_token))

    assert unassigned.json()["data"]["pagination"]["total"] == 1
    assert [w["id"] for w in by_owner.json()["data"]["warranties"]] == [str(user_warranty.id)]
    assert [w["id"] for w in by_assignee.json()["data"]["warranties"]] == [str(user_warranty.id)]
    assert [w["id"] for w in mine.json()["data"]["warranties"]] == [str(user_warranty.id)]


@pytest.mark.asyncio
async def test_admin_date_range_filter(client: AsyncClient, admin_token: str, user_warranty: Warranty):
    today = user_warranty.submitted_at.date().isoformat()

    inside = await client.get(
        "/api/v1/admin/warranties",
        params={"startDate": today, "endDate": today},
        headers=auth(admin_token),
    )
    before = await client.get(
        "/api/v1/admin/warranties",
        params={"endDate": "2000-01-01"},
        headers=auth(admin_token),
    )

    assert inside.json()["data"]["pagination"]["total"] == 1
    assert before.json()["data"]["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_triage_flow(
    client: AsyncClient,
    admin_token: str,
    user_token: str,
    second_admin: User,
    user_warranty: Warranty,
):
    triaged = await client.put(
        f"/api/v1/admin/warranties/{user_warranty.id}",
        json={"status": "in_review", "assignedTo": str(second_admin.id), "admin_notes": "check batch"},
        headers=auth(admin_token),
    )
    assert triaged.status_code == 200
    assert triaged.json()["data"]["warranty"]["admin_notes"] == "check batch"

    seen = await client.get(f"/api/v1/warranties/{user_warranty.id}", headers=auth(user_token))
    warranty = seen.json()["data"]["warranty"]
    assert warranty["status"] == "in_review"
    assert warranty["assigned_to"] == {
        "id": str(second_admin.id),
        "full_name": "Second Admin",
        "email": "admin2@example.com",
    }
    assert warranty["admin_notes"] is None


@pytest.mark.asyncio
async def test_assign_non_admin_is_rejected(
    client: AsyncClient,
    admin_token: str,
    other_user: User,
    user_warranty: Warranty,
):
    response = await client.put(
        f"/api/v1/admin/warranties/{user_warranty.id}/assign",
        json={"assignedTo": str(other_user.id)},
        headers=auth(admin_token),
    )

    assert response.status_code == 400
    assert response.json()["reason"] == "invalid_assignee"

    current = await client.get(f"/api/v1/warranties/{user_warranty.id}", headers=auth(admin_token))
    assert current.json()["data"]["warranty"]["assigned_to"] is None


@pytest.mark.asyncio
async def test_unassign(
    client: AsyncClient,
    admin_token: str,
    admin_user: User,
    user_warranty: Warranty,
):
    url = f"/api/v1/admin/warranties/{user_warranty.id}/assign"
    await client.put(url, json={"assignedTo": str(admin_user.id)}, headers=auth(admin_token))

    response = await client.put(url, json={"assignedTo": None}, headers=auth(admin_token))

    assert response.status_code == 200
    assert response.json()["message"] == "Warranty unassigned"
    assert response.json()["data"]["warranty"]["assigned_to"] is None


@pytest.mark.asyncio
async def test_bulk_update(
    client: AsyncClient,
    admin_token: str,
    user_token: str,
    user_warranty: Warranty,
):
    created = await client.post("/api/v1/warranties", json=warranty_json(), headers=auth(user_token))
    other_id = created.json()["data"]["warranty"]["id"]

    response = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={
            "warrantyIds": [str(user_warranty.id), other_id, str(uuid.uuid4())],
            "updateData": {"status": "rejected", "resolution": "out of coverage"},
        },
        headers=auth(admin_token),
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"matched_count": 2, "modified_count": 2}

    listed = await client.get(
        "/api/v1/admin/warranties",
        params={"status": "rejected"},
        headers=auth(admin_token),
    )
    assert listed.json()["data"]["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_bulk_update_with_malformed_ids_changes_nothing(
    client: AsyncClient,
    admin_token: str,
    user_warranty: Warranty,
):
    response = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={
            "warrantyIds": [str(user_warranty.id), "nope"],
            "updateData": {"status": "approved"},
        },
        headers=auth(admin_token),
    )

    assert response.status_code == 400
    assert response.json()["invalid_ids"] == ["nope"]

    current = await client.get(f"/api/v1/warranties/{user_warranty.id}", headers=auth(admin_token))
    assert current.json()["data"]["warranty"]["status"] == "pending"


@pytest.mark.asyncio
async def test_bulk_update_rejects_descriptive_fields(
    client: AsyncClient,
    admin_token: str,
    user_warranty: Warranty,
):
    response = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={"warrantyIds": [str(user_warranty.id)], "updateData": {"license_plate": "HACK 1"}},
        headers=auth(admin_token),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk_update_requires_ids_and_data(client: AsyncClient, admin_token: str):
    no_ids = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={"warrantyIds": [], "updateData": {"status": "approved"}},
        headers=auth(admin_token),
    )
    no_data = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={"warrantyIds": [str(uuid.uuid4())], "updateData": {}},
        headers=auth(admin_token),
    )

    assert no_ids.status_code == 400
    assert no_data.status_code == 400


@pytest.mark.asyncio
async def test_admin_deletes_any_status(
    client: AsyncClient,
    admin_token: str,
    user_token: str,
    user_warranty: Warranty,
):
    await client.put(
        f"/api/v1/admin/warranties/{user_warranty.id}",
        json={"status": "approved"},
        headers=auth(admin_token),
    )

    owner_attempt = await client.delete(f"/api/v1/warranties/{user_warranty.id}", headers=auth(user_token))
    admin_attempt = await client.delete(
        f"/api/v1/admin/warranties/{user_warranty.id}",
        headers=auth(admin_token),
    )

    assert owner_attempt.status_code == 403
    assert owner_attempt.json()["reason"] == "not_deletable"
    assert admin_attempt.status_code == 200


@pytest.mark.asyncio
async def test_dashboard_stats(
    client: AsyncClient,
    admin_token: str,
    user_warranty: Warranty,
):
    response = await client.get("/api/v1/admin/stats", headers=auth(admin_token))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["overview"]["total"] == 1
    assert data["overview"]["pending"] == 1
    assert data["top_brands"][0]["key"] == "Qualinex"
    assert data["user_stats"]["total_users"] == 2
    assert len(data["monthly_trends"]) == 1


@pytest.mark.asyncio
async def test_list_active_admins(
    client: AsyncClient,
    admin_token: str,
    second_admin: User,
    inactive_admin: User,
):
    response = await client.get("/api/v1/admin/users/admins", headers=auth(admin_token))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    emails = [admin["email"] for admin in body["data"]["admins"]]
    assert emails == ["admin2@example.com", "admin@example.com"]


@pytest.mark.asyncio
async def test_admin_update_rejects_null_status(
    client: AsyncClient,
    admin_token: str,
    user_warranty: Warranty,
):
    response = await client.put(
        f"/api/v1/admin/warranties/{user_warranty.id}",
        json={"status": None},
        headers=auth(admin_token),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == [{"field": "status", "message": "Cannot be null"}]

    current = await client.get(f"/api/v1/warranties/{user_warranty.id}", headers=auth(admin_token))
    assert current.json()["data"]["warranty"]["status"] == "pending"


@pytest.mark.asyncio
async def test_bulk_update_rejects_null_priority(
    client: AsyncClient,
    admin_token: str,
    user_warranty: Warranty,
):
    response = await client.put(
        "/api/v1/admin/warranties/bulk-update",
        json={"warrantyIds": [str(user_warranty.id)], "updateData": {"priority": None}},
        headers=auth(admin_token),
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "priority"

    current = await client.get(f"/api/v1/warranties/{user_warranty.id}", headers=auth(admin_token))
    assert current.json()["data"]["warranty"]["priority"] == "medium"
