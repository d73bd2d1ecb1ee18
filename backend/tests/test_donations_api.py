"""
Donation API Tests.

Covers POST /v1/donations end to end plus the donation history and stats
views that read the ledger afterwards.
"""

import pytest
from conftest import auth_header


@pytest.mark.asyncio
async def test_donation_funds_request_and_closes_it(client, register_user, open_request):
    donor_token, donor_id = await register_user(pto_hours=40)
    recipient_token, recipient_id = await register_user(pto_hours=0, need_support=True)
    request_id = await open_request(recipient_token, hours_needed=40)

    response = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 40,
        "message": "Take care"
    })

    assert response.status_code == 201, response.text
    receipt = response.json()
    assert receipt["message"] == "Donation successful"
    assert receipt["donor_available_pto_hours"] == 0
    assert receipt["request_hours_received"] == 40
    assert receipt["request_status"] == "fulfilled"
    assert receipt["donation"]["donor_id"] == donor_id
    assert receipt["donation"]["message"] == "Take care"

    me = await client.get("/v1/auth/me", headers=auth_header(donor_token))
    assert me.json()["available_pto_hours"] == 0

    detail = await client.get(f"/v1/requests/{request_id}", headers=auth_header(donor_token))
    assert detail.json()["status"] == "fulfilled"
    assert detail.json()["hours_received"] == 40
    assert detail.json()["hours_remaining"] == 0

    # Closed requests leave the board
    board = await client.get("/v1/requests", headers=auth_header(donor_token))
    assert board.json()["total"] == 0


@pytest.mark.asyncio
async def test_donation_insufficient_balance(client, register_user, open_request):
    donor_token, _ = await register_user(pto_hours=10)
    recipient_token, _ = await register_user()
    request_id = await open_request(recipient_token, hours_needed=40)

    response = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 20
    })

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_DONATION_002"

    me = await client.get("/v1/auth/me", headers=auth_header(donor_token))
    assert me.json()["available_pto_hours"] == 10

    detail = await client.get(f"/v1/requests/{request_id}", headers=auth_header(donor_token))
    assert detail.json()["hours_received"] == 0
    assert detail.json()["status"] == "active"


@pytest.mark.asyncio
async def test_donation_to_fulfilled_or_missing_request(client, register_user, open_request):
    donor_token, _ = await register_user(pto_hours=50)
    recipient_token, _ = await register_user()
    request_id = await open_request(recipient_token, hours_needed=8)

    first = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 8
    })
    assert first.status_code == 201

    again = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 5
    })
    assert again.status_code == 404
    assert again.json()["error_code"] == "ERR_DONATION_003"

    missing = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": 9999,
        "hours": 5
    })
    assert missing.status_code == 404

    me = await client.get("/v1/auth/me", headers=auth_header(donor_token))
    assert me.json()["available_pto_hours"] == 42


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"request_id": 1, "hours": 0},
    {"request_id": 1, "hours": -4},
    {"request_id": 1, "hours": 2.5},
    {"request_id": 1},
    {"hours": 3},
])
async def test_donation_validation_errors(client, register_user, body):
    token, _ = await register_user(pto_hours=10)

    response = await client.post("/v1/donations", headers=auth_header(token), json=body)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_donation_huge_hours_rejected(client, register_user, open_request):
    donor_token, _ = await register_user(pto_hours=10)
    recipient_token, _ = await register_user()
    request_id = await open_request(recipient_token, hours_needed=40)

    huge = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 2**63
    })
    assert huge.status_code == 400

    # Largest accepted value still fails on the balance, not the store
    largest = await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 2**31 - 1
    })
    assert largest.status_code == 400
    assert largest.json()["error_code"] == "ERR_DONATION_002"

    me = await client.get("/v1/auth/me", headers=auth_header(donor_token))
    assert me.json()["available_pto_hours"] == 10

    detail = await client.get(f"/v1/requests/{request_id}", headers=auth_header(donor_token))
    assert detail.json()["hours_received"] == 0


@pytest.mark.asyncio
async def test_donation_requires_authentication(client):
    response = await client.post("/v1/donations", json={"request_id": 1, "hours": 1})
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_donation_is_audited(client, register_user, open_request, admin_token):
    donor_token, donor_id = await register_user(pto_hours=5)
    recipient_token, _ = await register_user()
    request_id = await open_request(recipient_token, hours_needed=10)

    await client.post("/v1/donations", headers=auth_header(donor_token), json={
        "request_id": request_id,
        "hours": 5
    })

    response = await client.get(
        "/v1/admin/audit-logs",
        params={"action": "DONATION_RECORDED"},
        headers=auth_header(admin_token)
    )

    logs = response.json()["logs"]
    assert len(logs) == 1
    assert logs[0]["actor_id"] == donor_id
    assert logs[0]["meta_data"]["hours"] == 5
    assert logs[0]["meta_data"]["request_status"] == "active"


@pytest.mark.asyncio
async def test_donation_history_and_stats(client, register_user, open_request):
    donor_token, donor_id = await register_user(pto_hours=30)
    first_token, first_id = await register_user(first_name="Sam", last_name="Lee")
    second_token, _ = await register_user()

    request_a = await open_request(first_token, hours_needed=50, reason="Surgery")
    request_b = await open_request(first_token, hours_needed=50, category="family")
    request_c = await open_request(second_token, hours_needed=50)

    for request_id, hours in ((request_a, 5), (request_b, 3), (request_c, 2)):
        response = await client.post("/v1/donations", headers=auth_header(donor_token), json={
            "request_id": request_id,
            "hours": hours
        })
        assert response.status_code == 201

    stats = await client.get(f"/v1/users/{donor_id}/stats", headers=auth_header(donor_token))
    assert stats.status_code == 200
    # Two requests from the same person count once
    assert stats.json() == {"total_donated": 10, "people_helped": 2, "available_pto": 20}

    history = await client.get(f"/v1/users/{donor_id}/donations", headers=auth_header(donor_token))
    assert history.status_code == 200
    data = history.json()
    assert data["total"] == 3
    assert [d["request_id"] for d in data["donations"]] == [request_c, request_b, request_a]

    surgery = data["donations"][2]
    assert surgery["reason"] == "Surgery"
    assert surgery["recipient_id"] == first_id
    assert surgery["recipient_first_name"] == "Sam"
    assert surgery["recipient_last_name"] == "Lee"


@pytest.mark.asyncio
async def test_stats_for_user_without_donations(client, register_user):
    token, user_id = await register_user(pto_hours=12)

    response = await client.get(f"/v1/users/{user_id}/stats", headers=auth_header(token))

    assert response.json() == {"total_donated": 0, "people_helped": 0, "available_pto": 12}


@pytest.mark.asyncio
async def test_history_and_stats_are_private(client, register_user, admin_token):
    _, owner_id = await register_user(pto_hours=12)
    other_token, _ = await register_user()

    assert (await client.get(f"/v1/users/{owner_id}/stats", headers=auth_header(other_token))).status_code == 403
    assert (await client.get(f"/v1/users/{owner_id}/donations", headers=auth_header(other_token))).status_code == 403

    admin_view = await client.get(f"/v1/users/{owner_id}/stats", headers=auth_header(admin_token))
    assert admin_view.status_code == 200
    assert admin_view.json()["available_pto"] == 12

    unknown = await client.get("/v1/users/9999/stats", headers=auth_header(admin_token))
    assert unknown.json() == {"total_donated": 0, "people_helped": 0, "available_pto": 0}
