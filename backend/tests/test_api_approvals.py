"""Tests for the approval endpoints: status update, progress, email links."""
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient, ASGITransport

from conftest import OTHER_PLANT, add_user, approve_through, auth_headers
from premium_freight.services import action_links, approver_directory, ledger


def _status_body(order_id, user, new_status=None, **extra):
    return {
        "orderId": order_id,
        "newStatusId": user.authorization_level if new_status is None else new_status,
        "userLevel": user.authorization_level,
        "userID": user.id,
        **extra,
    }


# ─── POST /approvals/status ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_status_update_approves_level_one(app, db, make_order, hierarchy):
    """The level-1 approver approves; response reports the new level."""
    order = make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(order.id, hierarchy[1]),
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["new_status"] == 1
    assert data["is_terminal"] is False
    db.expire_all()
    assert ledger.get_entry(db, order.id).act_approv == 1


@pytest.mark.asyncio
async def test_status_update_rejection(app, db, make_order, hierarchy):
    order = make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(order.id, hierarchy[1], 99, rejection_reason="carrier not approved"),
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 200
    assert response.json()["new_status"] == 99
    assert response.json()["is_terminal"] is True


@pytest.mark.asyncio
async def test_status_update_without_token_is_401(app, make_order, hierarchy):
    order = make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/v1/approvals/status", json=_status_body(order.id, hierarchy[1]))

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {"success": False, "message": "Not authenticated.", "code": "UNAUTHENTICATED"}


@pytest.mark.asyncio
async def test_claimed_level_must_match_session(app, make_order, hierarchy):
    """Claiming a different userLevel than the authenticated user's is 403."""
    order = make_order()
    body = _status_body(order.id, hierarchy[1])
    body["userLevel"] = 2
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/v1/approvals/status", json=body, headers=auth_headers(hierarchy[1]))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_acting_for_another_user_is_403(app, make_order, hierarchy):
    order = make_order()
    body = _status_body(order.id, hierarchy[1])
    body["userID"] = hierarchy[2].id
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/api/v1/approvals/status", json=body, headers=auth_headers(hierarchy[1]))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_out_of_sequence_error_body(app, make_order, hierarchy):
    order = make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(order.id, hierarchy[3]),
            headers=auth_headers(hierarchy[3]),
        )

    assert response.status_code == 403
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "OUT_OF_SEQUENCE"
    assert "awaiting level 1" in data["message"]


@pytest.mark.asyncio
async def test_rejection_without_reason_is_400(app, make_order, hierarchy):
    order = make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(order.id, hierarchy[1], 99),
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REJECTION_REASON"


@pytest.mark.asyncio
async def test_missing_field_is_400(app, hierarchy):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json={"orderId": 1},
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ARGUMENT"


@pytest.mark.asyncio
async def test_fully_approved_is_400(app, db, make_order, hierarchy):
    order = make_order(cost="1000")
    approve_through(db, order.id, hierarchy, 5)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(order.id, hierarchy[6]),
            headers=auth_headers(hierarchy[6]),
        )

    assert response.status_code == 400
    assert response.json()["code"] == "ALREADY_FULLY_APPROVED"


@pytest.mark.asyncio
async def test_unknown_order_is_404(app, hierarchy):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/approvals/status",
            json=_status_body(4242, hierarchy[1]),
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 404


# ─── GET /approvals/progress ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_progress(app, db, make_order, hierarchy, creator):
    order = make_order()
    approve_through(db, order.id, hierarchy, 3)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(
            f"/api/v1/approvals/progress?orderId={order.id}",
            headers=auth_headers(creator),
        )

    assert response.status_code == 200
    data = response.json()
    assert data["percentage"] == 50.0
    assert data["creator"]["email"] == creator.email
    assert [s["status"] for s in data["levels"]][:4] == ["approved", "approved", "approved", "current"]


@pytest.mark.asyncio
async def test_progress_other_plant_forbidden(app, db, make_order):
    order = make_order()
    outsider = add_user(db, "clerk.3330@grammer.com", plant=OTHER_PLANT, level=1)
    db.commit()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(
            f"/api/v1/approvals/progress?orderId={order.id}",
            headers=auth_headers(outsider),
        )

    assert response.status_code == 403


# ─── GET /approvals/email ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_email_link_approves_without_session(app, db, make_order):
    order = make_order()
    approver = approver_directory.resolve_approver(db, 1, order.creator_plant)
    urls = action_links.issue_links(db, order.id, approver, 1)
    raw = parse_qs(urlparse(urls["approve"]).query)["token"][0]

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        first = await client.get("/api/v1/approvals/email", params={"token": raw})
        second = await client.get("/api/v1/approvals/email", params={"token": raw})

    assert first.status_code == 200
    assert first.json()["new_status"] == 1
    assert second.status_code == 400
    assert "already been used" in second.json()["message"]
