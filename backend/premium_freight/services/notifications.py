"""Post-commit notifications.

Every function here is called only after the transaction it reports on has
committed. Building or dispatching a notification never raises: failures
are logged and the committed state stands.
"""
import logging

from sqlalchemy.orm import Session

from premium_freight.core.config import settings
from premium_freight.models.approver import level_name
from premium_freight.models.order import Order
from premium_freight.services import action_links, approval_state
from premium_freight.services import approver_directory

logger = logging.getLogger(__name__)


def _describe(order: Order) -> str:
    return (
        f"Order #{order.id}"
        + (f" ({order.reference_number})" if order.reference_number else "")
        + f": {order.quoted_cost} {order.currency} ({order.cost_euros} EUR), plant {order.creator_plant or 'regional'}"
    )


def _order_url(order_id: int) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/orders/{order_id}"


def _dispatch(to: str | None, subject: str, body: str) -> bool:
    if not to:
        logger.warning("Notification '%s' skipped: no recipient address", subject)
        return False
    from premium_freight.workers.notification_tasks import send_notification

    try:
        send_notification.delay(to, subject, body)
    except Exception:
        logger.exception("Could not dispatch notification '%s' to %s", subject, to)
        return False
    logger.info("Notification dispatched to %s: %s", to, subject)
    return True


# ─── Approval chain ───

def notify_next_approver(db: Session, order_id: int, reminder: bool = False) -> bool:
    """Send the approver of the next pending level their approve/reject links."""
    try:
        order = db.get(Order, order_id)
        if order is None or order.ledger is None:
            logger.warning("notify_next_approver: order %s has no ledger row", order_id)
            return False
        state = approval_state.from_ledger(order.ledger.act_approv, order.required_auth_level)
        if not isinstance(state, approval_state.Pending):
            return False

        level = state.next_level
        approver = approver_directory.find_approver(db, level, order.creator_plant)
        if approver is None:
            logger.error(
                "notify_next_approver: no approver for level %s (plant %s), order %s",
                level, order.creator_plant, order_id,
            )
            return False

        urls = action_links.issue_links(db, order_id, approver, level)
        prefix = "Reminder: " if reminder else ""
        subject = f"{prefix}Premium Freight approval required ({level_name(level)}): order #{order.id}"
        body = (
            f"{_describe(order)}\n"
            f"Description: {order.description or '-'}\n"
            f"Approval level {level} of {order.required_auth_level}.\n\n"
            f"Approve: {urls['approve']}\n"
            f"Reject:  {urls['reject']}\n\n"
            f"Details: {_order_url(order.id)}"
        )
        return _dispatch(approver.user.email, subject, body)
    except Exception:
        db.rollback()
        logger.exception("notify_next_approver failed for order %s", order_id)
        return False


def notify_creator(db: Session, order_id: int) -> bool:
    """Tell the creator their order reached a terminal state."""
    try:
        order = db.get(Order, order_id)
        if order is None or order.ledger is None:
            return False
        entry = order.ledger
        state = approval_state.from_ledger(entry.act_approv, order.required_auth_level, entry.rejection_reason)
        if isinstance(state, approval_state.Rejected):
            subject = f"Premium Freight order #{order.id} was rejected"
            body = f"{_describe(order)}\nReason: {state.reason or '-'}\n\n{_order_url(order.id)}"
        elif isinstance(state, approval_state.Approved):
            subject = f"Premium Freight order #{order.id} is fully approved"
            body = f"{_describe(order)}\nAll {order.required_auth_level} approval levels are complete.\n\n{_order_url(order.id)}"
        else:
            return False
        return _dispatch(order.creator.email if order.creator else None, subject, body)
    except Exception:
        db.rollback()
        logger.exception("notify_creator failed for order %s", order_id)
        return False


def after_transition(db: Session, order_id: int, is_terminal: bool) -> bool:
    if is_terminal:
        return notify_creator(db, order_id)
    return notify_next_approver(db, order_id)


# ─── Edit workflow ───

def notify_edit_requested(db: Session, order_id: int, token_id: int, reason: str) -> bool:
    try:
        order = db.get(Order, order_id)
        if order is None:
            return False
        requester = order.creator.name if order.creator else "unknown"
        subject = f"Edit requested for Premium Freight order #{order.id}"
        body = (
            f"{requester} asked to edit {_describe(order)}\n"
            f"Reason: {reason}\n\n"
            f"Release edit request #{token_id}: {_order_url(order.id)}"
        )
        return _dispatch(settings.EDIT_REVIEWER_EMAIL, subject, body)
    except Exception:
        logger.exception("notify_edit_requested failed for order %s", order_id)
        return False


def notify_edit_released(db: Session, order_id: int, requester_email: str | None, raw_token: str) -> bool:
    try:
        order = db.get(Order, order_id)
        if order is None:
            return False
        edit_url = f"{settings.FRONTEND_URL.rstrip('/')}/orders/{order.id}/edit?token={raw_token}"
        subject = f"Your edit request for order #{order.id} was approved"
        body = (
            f"{_describe(order)}\n"
            f"You can now edit the order once, before the link expires:\n{edit_url}"
        )
        return _dispatch(requester_email, subject, body)
    except Exception:
        logger.exception("notify_edit_released failed for order %s", order_id)
        return False
