"""Tests for one-click approve / reject email links."""
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from conftest import actor
from premium_freight.core.config import settings
from premium_freight.core.exceptions import InvalidArgument, OutOfSequence
from premium_freight.models import ApprovalActionToken
from premium_freight.services import action_links, approver_directory, ledger, state_machine


def _token_of(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.fixture
def links(db, make_order):
    """An order awaiting level 1 plus its approve/reject raw tokens."""
    order = make_order()
    approver = approver_directory.resolve_approver(db, 1, order.creator_plant)
    urls = action_links.issue_links(db, order.id, approver, 1)
    return order, {action: _token_of(url) for action, url in urls.items()}


# ─── issue_links ──────────────────────────────────────────────────────────────

def test_issue_links_stores_only_hashes(db, links):
    order, raw = links
    rows = db.execute(
        select(ApprovalActionToken).where(ApprovalActionToken.order_id == order.id)
    ).scalars().all()

    assert sorted(r.action for r in rows) == ["approve", "reject"]
    stored = {r.token_hash for r in rows}
    assert raw["approve"] not in stored
    assert all(not r.is_used for r in rows)


def test_link_points_at_email_endpoint(db, make_order):
    order = make_order()
    approver = approver_directory.resolve_approver(db, 1, order.creator_plant)
    urls = action_links.issue_links(db, order.id, approver, 1)
    assert urls["approve"].startswith(f"{settings.APP_BASE_URL.rstrip('/')}/api/v1/approvals/email?token=")


# ─── consume ──────────────────────────────────────────────────────────────────

def test_approve_link_advances_ledger(db, links, hierarchy):
    order, raw = links

    result = action_links.consume(db, raw["approve"])

    assert result.act_approv == 1
    entry = ledger.get_entry(db, order.id)
    assert entry.user_id == hierarchy[1].id


def test_reject_link_uses_default_reason(db, links):
    order, raw = links

    result = action_links.consume(db, raw["reject"])

    assert result.act_approv == 99
    assert ledger.get_entry(db, order.id).rejection_reason == settings.EMAIL_REJECTION_DEFAULT_REASON


def test_reject_link_keeps_given_reason(db, links):
    order, raw = links
    action_links.consume(db, raw["reject"], reason="wrong carrier")
    assert ledger.get_entry(db, order.id).rejection_reason == "wrong carrier"


def test_link_is_single_use_across_siblings(db, links):
    """Using approve also burns the reject link for the same level."""
    _, raw = links
    action_links.consume(db, raw["approve"])

    with pytest.raises(InvalidArgument, match="already been used"):
        action_links.consume(db, raw["approve"])
    with pytest.raises(InvalidArgument, match="already been used"):
        action_links.consume(db, raw["reject"])


def test_expired_link_refused(db, links):
    order, raw = links
    for row in db.execute(
        select(ApprovalActionToken).where(ApprovalActionToken.order_id == order.id)
    ).scalars():
        row.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    with pytest.raises(InvalidArgument, match="expired"):
        action_links.consume(db, raw["approve"])
    assert ledger.get_entry(db, order.id).act_approv == 0


def test_unknown_link_refused(db, links):
    with pytest.raises(InvalidArgument, match="Invalid approval link"):
        action_links.consume(db, "1:1:approve:forged")


def test_stale_link_refused_and_left_unused(db, links, hierarchy):
    """The level was already approved in the app; the link's transition is refused."""
    order, raw = links
    state_machine.attempt_transition(db, order.id, actor(hierarchy[1]), 1)

    with pytest.raises(OutOfSequence):
        action_links.consume(db, raw["approve"])

    rows = db.execute(
        select(ApprovalActionToken).where(ApprovalActionToken.order_id == order.id)
    ).scalars().all()
    assert all(not r.is_used for r in rows)
