"""Approval state machine: validates a requested transition and hands it to the ledger.

Checks run in a fixed order inside the same transaction as the write:
plant scope, sequencing, rejection reason, completion bound. The ledger
row is locked FOR UPDATE while they run and the write itself is a
compare-and-set, so a concurrent duplicate of the same step fails with
OutOfSequence instead of approving twice.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.config import settings
from premium_freight.core.exceptions import (
    AlreadyFullyApproved,
    CrossPlantForbidden,
    InvalidArgument,
    InvalidRejectionReason,
    NotFound,
    OutOfSequence,
    PremiumFreightError,
    TransactionFailed,
)
from premium_freight.models.approval import REJECTED_LEVEL
from premium_freight.models.approver import MAX_APPROVAL_LEVEL, MIN_APPROVAL_LEVEL
from premium_freight.models.order import Order
from premium_freight.services import approval_state
from premium_freight.services import ledger as ledger_svc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    order_id: int
    state: approval_state.ApprovalState
    act_approv: int
    required_level: int

    @property
    def is_terminal(self) -> bool:
        return approval_state.is_terminal(self.state)

    @property
    def next_level(self) -> int | None:
        if isinstance(self.state, approval_state.Pending):
            return self.state.next_level
        return None


def validate_rejection_reason(reason: str | None) -> str:
    """Return the stripped reason or raise InvalidRejectionReason."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise InvalidRejectionReason("A rejection reason is required.")
    if len(cleaned) > settings.REJECTION_REASON_MAX_LENGTH:
        raise InvalidRejectionReason(
            f"Rejection reason cannot exceed {settings.REJECTION_REASON_MAX_LENGTH} characters."
        )
    return cleaned


def _check_plant(actor: ActorContext, order: Order) -> None:
    if actor.plant and actor.plant != order.creator_plant:
        raise CrossPlantForbidden(actor.plant, order.creator_plant)


def attempt_transition(
    db: Session,
    order_id: int,
    actor: ActorContext,
    target_level: int,
    timestamp: datetime | None = None,
    rejection_reason: str | None = None,
) -> TransitionResult:
    """Apply an approve (target = actor's level) or reject (target = 99) step.

    Raises:
        InvalidArgument: target level outside 1..8 and not 99.
        NotFound: unknown order or missing ledger row.
        CrossPlantForbidden: plant-scoped actor acting on another plant's order.
        OutOfSequence: actor's level is not the next expected level.
        InvalidRejectionReason: rejection without a reason, or one too long.
        AlreadyFullyApproved: order already reached its required level.
        TransactionFailed: the write was rolled back.
    """
    if isinstance(target_level, bool) or not isinstance(target_level, int) or not (
        target_level == REJECTED_LEVEL or MIN_APPROVAL_LEVEL <= target_level <= MAX_APPROVAL_LEVEL
    ):
        raise InvalidArgument(f"Invalid target level {target_level!r}.")

    try:
        entry = ledger_svc.get_entry(db, order_id, for_update=True)
        order = db.get(Order, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found.")

        current = entry.act_approv
        required = order.required_auth_level

        _check_plant(actor, order)

        if current == REJECTED_LEVEL:
            raise OutOfSequence(order_id, None, actor.authorization_level)
        expected = current + 1
        if actor.authorization_level != expected:
            raise OutOfSequence(order_id, expected, actor.authorization_level)

        reason = None
        if target_level == REJECTED_LEVEL:
            reason = validate_rejection_reason(rejection_reason)

        if current >= required or (target_level != REJECTED_LEVEL and target_level > required):
            raise AlreadyFullyApproved(order_id, required)
        if target_level != REJECTED_LEVEL and target_level != actor.authorization_level:
            raise OutOfSequence(order_id, expected, target_level)
    except PremiumFreightError as exc:
        # release the row lock taken above
        db.rollback()
        logger.info(
            "Transition refused: order=%s actor=%s level=%s target=%s (%s)",
            order_id, actor.user_id, actor.authorization_level, target_level, exc.code,
        )
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Transition check failed: order=%s target=%s", order_id, target_level)
        raise TransactionFailed(f"Could not read the approval state of order {order_id}.") from exc

    ledger_svc.advance(
        db,
        order_id,
        actor.user_id,
        target_level,
        timestamp,
        reason,
        expected_level=current,
    )

    state = approval_state.from_ledger(target_level, required, reason)
    return TransitionResult(
        order_id=order_id,
        state=state,
        act_approv=approval_state.to_wire(state),
        required_level=required,
    )
