"""Approval progress of one order: per-level timeline and completion percentage."""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.models.approval import REJECTED_LEVEL, HistoryAction
from premium_freight.models.approver import level_name
from premium_freight.services import approver_directory
from premium_freight.services import ledger as ledger_svc
from premium_freight.services import orders as order_svc

logger = logging.getLogger(__name__)


@dataclass
class LevelStep:
    level: int
    name: str
    approver_user_id: int
    approver_name: str
    approver_email: str
    approver_display_name: str
    status: str  # approved | rejected | current | pending | not_reached
    completed: bool = False
    current: bool = False
    rejected_here: bool = False
    acted_at: datetime | None = None


@dataclass
class OrderProgress:
    order_id: int
    creator_id: int
    creator_name: str
    creator_email: str
    plant: str | None
    act_approv: int
    required_level: int
    state: str  # pending | approved | rejected
    percentage: float
    rejection_reason: str | None = None
    rejected_level: int | None = None
    levels: list[LevelStep] = field(default_factory=list)


def percentage(act_approv: int, required_level: int, rejected_level: int | None = None) -> float:
    """0-100. Rejected orders report how far along the chain the rejection happened."""
    if required_level <= 0:
        return 0.0
    reached = rejected_level if act_approv == REJECTED_LEVEL else act_approv
    reached = min(reached or 0, required_level)
    return round(reached / required_level * 100, 2)


def order_progress(db: Session, order_id: int, actor: ActorContext) -> OrderProgress:
    """Timeline of levels 1..required for an order.

    Raises NotFound, Forbidden (plant scope) and IncompleteApproverChain
    when any level of the chain has no approver.
    """
    order = order_svc.get_order(db, order_id, actor)
    entry = ledger_svc.get_entry(db, order_id)
    act = entry.act_approv
    required = order.required_auth_level
    chain = approver_directory.resolve_chain(db, order.creator_plant, required)

    records = ledger_svc.history(db, order_id)
    acted_at: dict[int, datetime] = {}
    for record in records:
        if record.action_type == HistoryAction.APPROVED.value:
            acted_at[record.level_reached] = record.acted_at

    rejected_level = None
    rejected_at = None
    if act == REJECTED_LEVEL:
        rejected_level = ledger_svc.highest_approved_level(db, order_id) + 1
        rejection = ledger_svc.last_rejection(db, order_id)
        rejected_at = rejection.acted_at if rejection else entry.approval_date

    steps: list[LevelStep] = []
    for approver in chain:
        level = approver.approval_level
        if rejected_level is not None:
            completed = level < rejected_level
            rejected_here = level == rejected_level
            current = False
            status = "approved" if completed else "rejected" if rejected_here else "not_reached"
        else:
            completed = level <= act
            rejected_here = False
            current = level == act + 1
            status = "approved" if completed else "current" if current else "pending"

        steps.append(
            LevelStep(
                level=level,
                name=level_name(level),
                approver_user_id=approver.user_id,
                approver_name=approver.user.name,
                approver_email=approver.user.email,
                approver_display_name=approver.display_name,
                status=status,
                completed=completed,
                current=current,
                rejected_here=rejected_here,
                acted_at=rejected_at if rejected_here else acted_at.get(level) if completed else None,
            )
        )

    if act == REJECTED_LEVEL:
        state = "rejected"
    elif act >= required:
        state = "approved"
    else:
        state = "pending"

    return OrderProgress(
        order_id=order.id,
        creator_id=order.creator_id,
        creator_name=order.creator.name,
        creator_email=order.creator.email,
        plant=order.creator_plant,
        act_approv=act,
        required_level=required,
        state=state,
        percentage=percentage(act, required, rejected_level),
        rejection_reason=entry.rejection_reason if act == REJECTED_LEVEL else None,
        rejected_level=rejected_level,
        levels=steps,
    )
