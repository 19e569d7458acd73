"""Approval ledger: the single live progress row per order plus its history.

``advance`` is the only mutator and persists whatever transition it is
handed; sequencing and authorization belong to the state machine.
All functions accept a sync SQLAlchemy Session.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from premium_freight.core.exceptions import NotFound, OutOfSequence, TransactionFailed
from premium_freight.models.approval import (
    REJECTED_LEVEL,
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    HistoryAction,
)
from premium_freight.models.order import Order, OrderStatus
from premium_freight.services import approval_state
from premium_freight.services import audit as audit_svc

logger = logging.getLogger(__name__)


# ─── Reads ───

def get_entry(db: Session, order_id: int, for_update: bool = False) -> ApprovalLedgerEntry:
    """Load the ledger row of an order. Raises NotFound."""
    stmt = select(ApprovalLedgerEntry).where(ApprovalLedgerEntry.order_id == order_id)
    if for_update:
        stmt = stmt.with_for_update()
    entry = db.execute(stmt).scalars().first()
    if entry is None:
        raise NotFound(f"No approval record found for order {order_id}.")
    return entry


def get_current_state(db: Session, order_id: int) -> approval_state.ApprovalState:
    entry = get_entry(db, order_id)
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    return approval_state.from_ledger(entry.act_approv, order.required_auth_level, entry.rejection_reason)


def history(db: Session, order_id: int) -> list[ApprovalHistoryRecord]:
    """History records of an order, oldest first."""
    stmt = (
        select(ApprovalHistoryRecord)
        .where(ApprovalHistoryRecord.order_id == order_id)
        .order_by(ApprovalHistoryRecord.acted_at.asc(), ApprovalHistoryRecord.id.asc())
    )
    return list(db.execute(stmt).scalars().unique().all())


def last_rejection(db: Session, order_id: int) -> ApprovalHistoryRecord | None:
    stmt = (
        select(ApprovalHistoryRecord)
        .where(
            ApprovalHistoryRecord.order_id == order_id,
            ApprovalHistoryRecord.action_type == HistoryAction.REJECTED.value,
        )
        .order_by(ApprovalHistoryRecord.acted_at.desc(), ApprovalHistoryRecord.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def highest_approved_level(db: Session, order_id: int) -> int:
    """Highest level ever reached through an APPROVED action (0 if none)."""
    levels = [
        r.level_reached for r in history(db, order_id)
        if r.action_type == HistoryAction.APPROVED.value
    ]
    return max(levels, default=0)


# ─── Writes ───

def seed(db: Session, order: Order) -> ApprovalLedgerEntry:
    """Create the untouched (act_approv=0) ledger row for a new order. Flushes only."""
    entry = ApprovalLedgerEntry(order_id=order.id, act_approv=0)
    order.ledger = entry
    db.add(entry)
    db.flush()
    return entry


def _status_for(level: int, required_level: int) -> str:
    if level == REJECTED_LEVEL:
        return OrderStatus.rejected.value
    if level >= required_level:
        return OrderStatus.approved.value
    return OrderStatus.pending.value


def advance(
    db: Session,
    order_id: int,
    acting_user_id: int,
    new_level: int,
    timestamp: datetime | None = None,
    rejection_reason: str | None = None,
    *,
    expected_level: int,
    action: HistoryAction | None = None,
    comment: str | None = None,
    commit: bool = True,
) -> ApprovalLedgerEntry:
    """Persist one transition atomically.

    Updates the ledger row only if it still holds ``expected_level``,
    appends exactly one history record and syncs the order status.
    Raises OutOfSequence when another transition got there first and
    TransactionFailed (after rollback) on any persistence error.
    With ``commit=False`` the caller owns the transaction.
    """
    acted_at = timestamp or datetime.now(timezone.utc)
    if action is None:
        action = HistoryAction.REJECTED if new_level == REJECTED_LEVEL else HistoryAction.APPROVED

    try:
        result = db.execute(
            update(ApprovalLedgerEntry)
            .where(
                ApprovalLedgerEntry.order_id == order_id,
                ApprovalLedgerEntry.act_approv == expected_level,
            )
            .values(
                act_approv=new_level,
                user_id=acting_user_id,
                approval_date=acted_at,
                rejection_reason=rejection_reason if new_level == REJECTED_LEVEL else None,
            )
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning(
                "advance: compare-and-set lost order=%s expected=%s new=%s",
                order_id, expected_level, new_level,
            )
            raise OutOfSequence(
                order_id,
                None,
                None,
                message=f"Order {order_id} was updated by another action; reload and try again.",
            )

        db.add(
            ApprovalHistoryRecord(
                order_id=order_id,
                user_id=acting_user_id,
                action_type=action.value,
                level_reached=new_level,
                comment=rejection_reason if action == HistoryAction.REJECTED else comment,
                acted_at=acted_at,
            )
        )

        order = db.get(Order, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found.")
        previous_status = order.status
        order.status = _status_for(new_level, order.required_auth_level)

        audit_svc.log(
            db=db,
            action=f"approval_{action.value.lower()}",
            entity_type="order",
            entity_id=order_id,
            order_id=order_id,
            actor_id=acting_user_id,
            before={"act_approv": expected_level, "status": previous_status},
            after={"act_approv": new_level, "status": order.status},
            notes=rejection_reason or comment,
        )

        if commit:
            db.commit()
        else:
            db.flush()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("advance: transaction failed order=%s new_level=%s", order_id, new_level)
        raise TransactionFailed(f"Could not record approval for order {order_id}.") from exc

    logger.info(
        "Ledger advanced: order=%s %s -> %s by user=%s (%s)",
        order_id, expected_level, new_level, acting_user_id, action.value,
    )
    entry = get_entry(db, order_id)
    return entry
