"""Tests for post-commit notifications and the mailer client."""
from unittest.mock import MagicMock, patch

import httpx
from sqlalchemy import func, select

from conftest import actor, approve_through
from premium_freight.core.config import settings
from premium_freight.models import ApprovalActionToken, Approver
from premium_freight.services import email as email_svc
from premium_freight.services import notifications, state_machine
from premium_freight.workers.notification_tasks import send_notification


# ─── Dispatch ─────────────────────────────────────────────────────────────────

def test_next_approver_gets_links(db, make_order, hierarchy):
    order = make_order()
    with patch("premium_freight.services.notifications._dispatch", return_value=True) as dispatch:
        assert notifications.notify_next_approver(db, order.id) is True

    to, subject, body = dispatch.call_args.args
    assert to == hierarchy[1].email
    assert f"order #{order.id}" in subject
    assert "/api/v1/approvals/email?token=" in body
    count = db.execute(
        select(func.count(ApprovalActionToken.id)).where(ApprovalActionToken.order_id == order.id)
    ).scalar()
    assert count == 2


def test_reminder_subject(db, make_order):
    order = make_order()
    with patch("premium_freight.services.notifications._dispatch", return_value=True) as dispatch:
        notifications.notify_next_approver(db, order.id, reminder=True)
    assert dispatch.call_args.args[1].startswith("Reminder: ")


def test_terminal_order_notifies_creator(db, make_order, hierarchy, creator):
    order = make_order()
    state_machine.attempt_transition(db, order.id, actor(hierarchy[1]), 99, rejection_reason="over budget")

    with patch("premium_freight.services.notifications._dispatch", return_value=True) as dispatch:
        assert notifications.after_transition(db, order.id, is_terminal=True) is True

    to, subject, body = dispatch.call_args.args
    assert to == creator.email
    assert "rejected" in subject
    assert "over budget" in body


def test_no_next_approver_for_fully_approved(db, make_order, hierarchy):
    order = make_order(cost="1000")
    approve_through(db, order.id, hierarchy, 5)
    with patch("premium_freight.services.notifications._dispatch") as dispatch:
        assert notifications.notify_next_approver(db, order.id) is False
    dispatch.assert_not_called()


def test_missing_approver_is_logged_not_raised(db, make_order):
    order = make_order()
    db.query(Approver).filter(Approver.approval_level == 1).delete()
    db.commit()
    assert notifications.notify_next_approver(db, order.id) is False


def test_broker_failure_does_not_raise(db, make_order):
    """A dispatch error after commit leaves the committed order untouched."""
    order = make_order()
    with patch(
        "premium_freight.workers.notification_tasks.send_notification.delay",
        side_effect=ConnectionError("broker down"),
    ):
        assert notifications.notify_next_approver(db, order.id) is False


# ─── Mailer ───────────────────────────────────────────────────────────────────

def test_mail_disabled_only_logs():
    with patch("premium_freight.services.email.httpx.post") as post:
        email_svc.send_email("a@grammer.com", "Subject", "Body")
    post.assert_not_called()


def test_mail_enabled_posts_to_mailer():
    response = MagicMock()
    with patch.object(settings, "MAIL_ENABLED", True), \
            patch("premium_freight.services.email.httpx.post", return_value=response) as post:
        email_svc.send_email("a@grammer.com", "Subject", "Body")

    url = post.call_args.args[0]
    payload = post.call_args.kwargs["json"]
    assert url == settings.MAILER_URL
    assert payload["to"] == "a@grammer.com"
    assert payload["text"] == "Body"
    response.raise_for_status.assert_called_once()


def test_send_notification_task_reports_failure():
    with patch(
        "premium_freight.services.email.send_email",
        side_effect=httpx.ConnectError("refused"),
    ):
        result = send_notification.run("a@grammer.com", "Subject", "Body")
    assert result["status"] == "failed"


def test_send_notification_task_success():
    with patch("premium_freight.services.email.send_email") as send:
        result = send_notification.run("a@grammer.com", "Subject", "Body")
    assert result == {"status": "sent", "to": "a@grammer.com"}
    send.assert_called_once_with(to="a@grammer.com", subject="Subject", body="Body")
