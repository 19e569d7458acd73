"""Tests for order creation and the awaiting-level listing endpoint."""
from unittest.mock import patch

import pytest
from httpx import AsyncClient, ASGITransport

from conftest import OTHER_PLANT, PLANT, add_user, approve_through, auth_headers
from premium_freight.models import Approver


@pytest.fixture(autouse=True)
def no_dispatch():
    with patch("premium_freight.services.notifications._dispatch", return_value=True) as dispatch:
        yield dispatch


# ─── POST /orders ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_order_prices_and_notifies(app, hierarchy, creator, no_dispatch):
    """2000 EUR needs level 6; the level-1 approver is notified."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/orders",
            json={"quoted_cost": "2000", "currency": "EUR", "description": "Expedite seat frames"},
            headers=auth_headers(creator),
        )

    assert response.status_code == 201
    data = response.json()
    assert data["required_auth_level"] == 6
    assert data["act_approv"] == 0
    assert data["plant"] == PLANT
    assert data["status"] == "pending"
    assert no_dispatch.call_args.args[0] == hierarchy[1].email


@pytest.mark.asyncio
async def test_create_order_with_incomplete_chain_is_409(app, db, hierarchy, creator):
    db.query(Approver).filter(Approver.approval_level == 7).delete()
    db.commit()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/orders",
            json={"quoted_cost": "9000", "currency": "EUR"},
            headers=auth_headers(creator),
        )

    assert response.status_code == 409
    assert response.json()["code"] == "INCOMPLETE_APPROVER_CHAIN"


@pytest.mark.asyncio
async def test_create_order_rejects_non_positive_cost(app, hierarchy, creator):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/orders",
            json={"quoted_cost": "0", "currency": "EUR"},
            headers=auth_headers(creator),
        )

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_get_order_other_plant_forbidden(app, db, make_order):
    order = make_order()
    outsider = add_user(db, "clerk.3330@grammer.com", plant=OTHER_PLANT, level=2)
    db.commit()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(f"/api/v1/orders/{order.id}", headers=auth_headers(outsider))

    assert response.status_code == 403


# ─── GET /orders/by-approval-level ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_orders_awaiting_level(app, db, make_order, hierarchy):
    waiting = make_order(reference_number="PF-100")
    moved_on = make_order(reference_number="PF-101")
    approve_through(db, moved_on.id, hierarchy, 1)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(
            "/api/v1/orders/by-approval-level",
            params={"approval_level": 1},
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert [o["id"] for o in data["data"]] == [waiting.id]
    assert data["pagination"] == {"total": 1, "page": 1, "limit": 20, "totalPages": 1}
    assert data["filter"]["plant"] == PLANT


@pytest.mark.asyncio
async def test_plant_scoped_user_cannot_list_other_plant(app, make_order, hierarchy):
    """A plant-bound user asking for another plant still only sees their own."""
    make_order()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(
            "/api/v1/orders/by-approval-level",
            params={"approval_level": 1, "plant": OTHER_PLANT},
            headers=auth_headers(hierarchy[1]),
        )

    assert response.json()["filter"]["plant"] == PLANT
    assert response.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_invalid_listing_level_is_400(app, hierarchy):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get(
            "/api/v1/orders/by-approval-level",
            params={"approval_level": 0},
            headers=auth_headers(hierarchy[1]),
        )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_order_rejects_sub_cent_cost(app, hierarchy, creator):
    """Costs are stored in cents; more precision is refused instead of silently rounded."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/orders",
            json={"quoted_cost": "1500.004", "currency": "EUR"},
            headers=auth_headers(creator),
        )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ARGUMENT"
