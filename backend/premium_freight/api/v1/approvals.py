"""Approval endpoints: status update, progress and one-click email links."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.deps import get_actor
from premium_freight.core.exceptions import Forbidden
from premium_freight.db.session import get_db
from premium_freight.schemas.approvals import (
    EmailDecisionResponse,
    OrderProgressOut,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from premium_freight.services import action_links, notifications, progress, state_machine
from premium_freight.services.approval_state import Approved, Rejected

logger = logging.getLogger(__name__)

router = APIRouter()


def _outcome_message(result: state_machine.TransitionResult) -> str:
    if isinstance(result.state, Rejected):
        return f"Order {result.order_id} rejected."
    if isinstance(result.state, Approved):
        return f"Order {result.order_id} fully approved."
    return (
        f"Order {result.order_id} approved at level {result.act_approv}; "
        f"awaiting level {result.next_level}."
    )


# ─── Status update (approve / reject) ───

@router.post("/status", response_model=StatusUpdateResponse)
def update_status(
    body: StatusUpdateRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    """Approve (newStatusId = your level) or reject (newStatusId = 99) an order."""
    if body.user_level != actor.authorization_level:
        raise Forbidden("Your authorization level does not match the level in this request.")
    if body.user_id != actor.user_id:
        raise Forbidden("You can only act on your own behalf.")

    result = state_machine.attempt_transition(
        db,
        body.order_id,
        actor,
        body.new_status_id,
        timestamp=body.auth_date,
        rejection_reason=body.rejection_reason,
    )
    notifications.after_transition(db, result.order_id, result.is_terminal)

    return StatusUpdateResponse(
        message=_outcome_message(result),
        new_status=result.act_approv,
        required_level=result.required_level,
        is_terminal=result.is_terminal,
    )


# ─── Progress ───

@router.get("/progress", response_model=OrderProgressOut)
def order_progress(
    order_id: int = Query(..., alias="orderId"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    p = progress.order_progress(db, order_id, actor)
    return {
        "order_id": p.order_id,
        "creator": {
            "id": p.creator_id,
            "name": p.creator_name,
            "email": p.creator_email,
            "plant": p.plant,
        },
        "act_approv": p.act_approv,
        "required_level": p.required_level,
        "state": p.state,
        "percentage": p.percentage,
        "rejection_reason": p.rejection_reason,
        "rejected_level": p.rejected_level,
        "levels": p.levels,
    }


# ─── Email action link ───

@router.get("/email", response_model=EmailDecisionResponse)
def email_decision(
    token: str = Query(...),
    reason: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    """One-click approve/reject from an email link. No session needed; the token is the credential."""
    result = action_links.consume(db, token, reason)
    notifications.after_transition(db, result.order_id, result.is_terminal)
    return EmailDecisionResponse(
        message=_outcome_message(result),
        order_id=result.order_id,
        new_status=result.act_approv,
        is_terminal=result.is_terminal,
    )
