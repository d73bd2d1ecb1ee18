"""
User Profile Tests.

Partial profile updates; the PTO balance cannot be edited directly.
"""

import pytest
from conftest import auth_header


@pytest.mark.asyncio
async def test_patch_only_changes_given_fields(client, register_user):
    token, user_id = await register_user(pto_hours=16, first_name="Kim", last_name="Park")

    response = await client.patch("/v1/users/me", headers=auth_header(token), json={
        "phone": "555-9999",
        "need_support": True
    })

    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "555-9999"
    assert data["need_support"] is True
    assert data["first_name"] == "Kim"
    assert data["last_name"] == "Park"
    assert data["available_pto_hours"] == 16


@pytest.mark.asyncio
async def test_patch_ignores_balance(client, register_user):
    token, user_id = await register_user(pto_hours=16)

    response = await client.patch("/v1/users/me", headers=auth_header(token), json={
        "available_pto_hours": 500,
        "role": "ADMIN"
    })

    assert response.status_code == 200
    assert response.json()["available_pto_hours"] == 16
    assert response.json()["role"] == "EMPLOYEE"


@pytest.mark.asyncio
async def test_patch_rejects_null_required_field(client, register_user):
    token, _ = await register_user()

    response = await client.patch("/v1/users/me", headers=auth_header(token), json={"first_name": None})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_patch_unknown_company(client, register_user):
    token, _ = await register_user()

    response = await client.patch("/v1/users/me", headers=auth_header(token), json={"company_id": 404})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_profile_update_is_audited(client, register_user, admin_token):
    token, user_id = await register_user()

    await client.patch("/v1/users/me", headers=auth_header(token), json={"can_donate": False})

    response = await client.get(
        "/v1/admin/audit-logs",
        params={"action": "PROFILE_UPDATED", "target_user_id": user_id},
        headers=auth_header(admin_token)
    )

    logs = response.json()["logs"]
    assert len(logs) == 1
    assert logs[0]["meta_data"]["updated_fields"] == ["can_donate"]


@pytest.mark.asyncio
async def test_get_profile(client, register_user):
    token, _ = await register_user()
    _, other_id = await register_user(first_name="Quinn")

    response = await client.get(f"/v1/users/{other_id}", headers=auth_header(token))
    assert response.status_code == 200
    assert response.json()["first_name"] == "Quinn"
    assert "hashed_password" not in response.json()

    missing = await client.get("/v1/users/9999", headers=auth_header(token))
    assert missing.status_code == 404
