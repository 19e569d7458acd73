"""One-click approve / reject links carried by approver notification emails.

Each link holds a one-time token; only its HMAC hash is stored. Using a
link runs the regular state machine with an actor built from the
approver row the link was issued to.
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.config import settings
from premium_freight.core.exceptions import InvalidArgument
from premium_freight.core.security import create_action_token, hash_token
from premium_freight.models.approval import REJECTED_LEVEL, ApprovalActionToken
from premium_freight.models.approver import Approver
from premium_freight.services import state_machine

logger = logging.getLogger(__name__)

ACTIONS = ("approve", "reject")


def build_url(raw_token: str) -> str:
    base_url = settings.APP_BASE_URL.rstrip("/")
    return f"{base_url}/api/v1/approvals/email?token={raw_token}"


def issue_links(db: Session, order_id: int, approver: Approver, level: int) -> dict[str, str]:
    """Create an approve and a reject token for (order, level) and commit.

    Returns {"approve": url, "reject": url}.
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=settings.ACTION_TOKEN_EXPIRE_HOURS)

    urls: dict[str, str] = {}
    for action in ACTIONS:
        raw_token, token_hash = create_action_token(order_id, level, action)
        db.add(
            ApprovalActionToken(
                order_id=order_id,
                approver_id=approver.id,
                level=level,
                action=action,
                token_hash=token_hash,
                expires_at=expires_at,
            )
        )
        urls[action] = build_url(raw_token)

    db.commit()
    logger.info("Action links issued: order=%s level=%s approver=%s", order_id, level, approver.id)
    return urls


def consume(
    db: Session,
    raw_token: str,
    reason: str | None = None,
) -> state_machine.TransitionResult:
    """Apply the decision behind an email link.

    The token and its sibling for the same (order, level) are marked used in
    the same transaction as the transition; a refused transition leaves them
    unused.
    """
    token = db.execute(
        select(ApprovalActionToken)
        .where(ApprovalActionToken.token_hash == hash_token(raw_token))
        .with_for_update()
    ).scalars().first()

    if token is None:
        raise InvalidArgument("Invalid approval link.")
    if token.is_used:
        raise InvalidArgument("This approval link has already been used.")

    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    now = datetime.now(timezone.utc)
    if expires_at < now:
        raise InvalidArgument("This approval link has expired.")
    if token.action not in ACTIONS:
        raise InvalidArgument(f"Unknown action '{token.action}'.")

    db.execute(
        update(ApprovalActionToken)
        .where(
            ApprovalActionToken.order_id == token.order_id,
            ApprovalActionToken.level == token.level,
            ApprovalActionToken.is_used.is_(False),
        )
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session="evaluate")
    )
    db.flush()

    actor = ActorContext.from_approver(token.approver)
    if token.action == "approve":
        target_level = token.level
        rejection_reason = None
    else:
        target_level = REJECTED_LEVEL
        rejection_reason = reason if reason and reason.strip() else settings.EMAIL_REJECTION_DEFAULT_REASON

    logger.info(
        "Action link used: order=%s level=%s action=%s approver=%s",
        token.order_id, token.level, token.action, token.approver_id,
    )
    return state_machine.attempt_transition(
        db,
        token.order_id,
        actor,
        target_level,
        timestamp=now,
        rejection_reason=rejection_reason,
    )
