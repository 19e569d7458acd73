"""Edit-request workflow: reopen a submitted order for a single round of changes.

Lifecycle of an edit token:

    issued ──(reviewer releases)──► released ──(edited order submitted)──► used
       └──────────────(past expires_at)──────────────► expired

Submitting an edit never rewinds the ledger. ``act_approv`` stays where it
was; only the order fields, its required level and the next notification
target change. A rejected order is the one exception: it is reactivated by
an appended REACTIVATED step back to the highest level approved before the
rejection.

All functions accept a sync SQLAlchemy Session and commit themselves;
notifications go out after the commit.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.config import settings
from premium_freight.core.exceptions import (
    Forbidden,
    InvalidArgument,
    InvalidEditToken,
    NotFound,
    PremiumFreightError,
    TransactionFailed,
)
from premium_freight.core.security import create_edit_token, hash_token
from premium_freight.models.approval import REJECTED_LEVEL, HistoryAction
from premium_freight.models.edit_token import EditToken, EditTokenStatus
from premium_freight.models.order import EDITABLE_FIELDS, Order, OrderStatus
from premium_freight.models.user import User
from premium_freight.services import approver_directory, notifications
from premium_freight.services import audit as audit_svc
from premium_freight.services import ledger as ledger_svc
from premium_freight.services import orders as order_svc

logger = logging.getLogger(__name__)


class ResumeScenario(str, enum.Enum):
    FULLY_APPROVED = "FULLY_APPROVED"                        # nothing left to approve; creator is told
    IN_PROGRESS = "IN_PROGRESS"                              # chain resumes at act_approv + 1
    APPROVED_BY_LOWERED_LEVEL = "APPROVED_BY_LOWERED_LEVEL"  # new required level already reached
    REACTIVATED = "REACTIVATED"                              # rejected order re-enters the chain


@dataclass(frozen=True)
class ResumePoint:
    scenario: ResumeScenario
    act_approv: int
    required_level: int
    next_level: int | None
    notify: str  # "approver" | "creator"


@dataclass
class EditSubmission:
    order: Order
    resume_point: ResumePoint
    changed_fields: list[str] = field(default_factory=list)
    previous_required_level: int = 0


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_reviewer(actor: ActorContext) -> bool:
    return actor.role in (settings.EDIT_REVIEWER_ROLE, "ADMIN")


# ─── Resume point ───

def determine_resume_point(
    act_approv: int,
    previous_required: int,
    new_required: int,
    highest_approved: int = 0,
) -> ResumePoint:
    """Where the approval chain continues after an edit.

    Pure. ``highest_approved`` is only consulted for rejected orders.
    """
    if act_approv == REJECTED_LEVEL:
        next_level = highest_approved + 1 if highest_approved < new_required else None
        return ResumePoint(
            scenario=ResumeScenario.REACTIVATED,
            act_approv=highest_approved,
            required_level=new_required,
            next_level=next_level,
            notify="approver" if next_level else "creator",
        )

    if act_approv >= new_required:
        was_complete = act_approv >= previous_required
        return ResumePoint(
            scenario=(
                ResumeScenario.FULLY_APPROVED if was_complete
                else ResumeScenario.APPROVED_BY_LOWERED_LEVEL
            ),
            act_approv=act_approv,
            required_level=new_required,
            next_level=None,
            notify="creator",
        )

    return ResumePoint(
        scenario=ResumeScenario.IN_PROGRESS,
        act_approv=act_approv,
        required_level=new_required,
        next_level=act_approv + 1,
        notify="approver",
    )


def resolve_resume_point(db: Session, order_id: int, new_required_level: int | None = None) -> ResumePoint:
    """Read-only resume-point resolution for an order as it stands now.

    ``new_required_level`` previews the effect of a cost change.
    """
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    entry = ledger_svc.get_entry(db, order_id)
    highest = 0
    if entry.act_approv == REJECTED_LEVEL:
        highest = ledger_svc.highest_approved_level(db, order_id)
    return determine_resume_point(
        entry.act_approv,
        order.required_auth_level,
        new_required_level or order.required_auth_level,
        highest,
    )


# ─── Request / release ───

def request_edit(db: Session, order_id: int, requester: ActorContext, reason: str) -> EditToken:
    """Issue an edit token for an order and notify the reviewing role.

    Only the order's creator may ask. Does not touch the ledger.
    """
    reason = (reason or "").strip()
    if not reason:
        raise InvalidArgument("A reason for the edit request is required.")

    order = db.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    if order.creator_id != requester.user_id:
        raise Forbidden("Only the creator of an order can request to edit it.")

    now = _now()
    open_token = db.execute(
        select(EditToken).where(
            EditToken.order_id == order_id,
            EditToken.status.in_([EditTokenStatus.issued.value, EditTokenStatus.released.value]),
        )
    ).scalars().first()
    if open_token is not None and _aware(open_token.expires_at) > now:
        raise InvalidArgument(f"Order {order_id} already has an open edit request (#{open_token.id}).")

    _, token_hash = create_edit_token()
    try:
        token = EditToken(
            order_id=order_id,
            requester_id=requester.user_id,
            reason=reason,
            token_hash=token_hash,
            status=EditTokenStatus.issued.value,
            expires_at=now + timedelta(hours=settings.EDIT_TOKEN_EXPIRE_HOURS),
        )
        db.add(token)
        db.flush()
        audit_svc.log(
            db=db,
            action="edit_requested",
            entity_type="edit_token",
            entity_id=token.id,
            order_id=order_id,
            actor_id=requester.user_id,
            actor_email=requester.email,
            after={"status": token.status, "expires_at": token.expires_at.isoformat()},
            notes=reason,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("request_edit failed for order %s", order_id)
        raise TransactionFailed(f"Could not record edit request for order {order_id}.") from exc

    logger.info("Edit token issued: id=%s order=%s requester=%s", token.id, order_id, requester.user_id)
    notifications.notify_edit_requested(db, order_id, token.id, reason)
    return token


def release_for_edit(db: Session, token_id: int, released_by: ActorContext) -> tuple[EditToken, str]:
    """Make an issued token usable and send the requester their edit link.

    The token value is rotated on release; the returned raw value is the
    only copy and goes out with the notification.
    """
    if not _is_reviewer(released_by):
        raise Forbidden("Only edit reviewers can release edit requests.")

    token = db.execute(
        select(EditToken).where(EditToken.id == token_id).with_for_update()
    ).scalars().first()
    if token is None:
        raise NotFound(f"Edit request {token_id} not found.")
    if token.status != EditTokenStatus.issued.value:
        db.rollback()
        raise InvalidEditToken(f"Edit request {token_id} is {token.status}, not awaiting release.")

    now = _now()
    if _aware(token.expires_at) <= now:
        token.status = EditTokenStatus.expired.value
        db.commit()
        raise InvalidEditToken(f"Edit request {token_id} has expired.")

    raw_token, token_hash = create_edit_token()
    try:
        token.token_hash = token_hash
        token.status = EditTokenStatus.released.value
        token.released_by = released_by.user_id
        token.released_at = now
        token.expires_at = now + timedelta(hours=settings.EDIT_TOKEN_EXPIRE_HOURS)
        audit_svc.log(
            db=db,
            action="edit_released",
            entity_type="edit_token",
            entity_id=token.id,
            order_id=token.order_id,
            actor_id=released_by.user_id,
            actor_email=released_by.email,
            before={"status": EditTokenStatus.issued.value},
            after={"status": token.status, "expires_at": token.expires_at.isoformat()},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("release_for_edit failed for token %s", token_id)
        raise TransactionFailed(f"Could not release edit request {token_id}.") from exc

    logger.info("Edit token released: id=%s order=%s by=%s", token.id, token.order_id, released_by.user_id)
    requester = db.get(User, token.requester_id)
    notifications.notify_edit_released(
        db, token.order_id, requester.email if requester else None, raw_token
    )
    return token, raw_token


# ─── Validate / submit ───

def _find_token(db: Session, raw_token: str, for_update: bool = False) -> EditToken | None:
    if not raw_token:
        return None
    stmt = select(EditToken).where(EditToken.token_hash == hash_token(raw_token))
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def _check_usable(token: EditToken | None, order_id: int) -> EditToken:
    if token is None or token.order_id != order_id:
        raise InvalidEditToken("Edit token is not valid for this order.")
    if token.status == EditTokenStatus.used.value:
        raise InvalidEditToken("Edit token has already been used.")
    if token.status != EditTokenStatus.released.value:
        raise InvalidEditToken(f"Edit token is {token.status}.")
    if _aware(token.expires_at) <= _now():
        raise InvalidEditToken("Edit token has expired.")
    return token


def validate_token(db: Session, order_id: int, raw_token: str) -> EditToken:
    """Return the released, unexpired token for this order or raise InvalidEditToken."""
    return _check_usable(_find_token(db, raw_token), order_id)


def _to_amount(value) -> Decimal:
    amount = order_svc.quantize_cost(value)
    if amount <= 0:
        raise InvalidArgument("quoted_cost must be greater than zero.")
    return amount


def _apply_changes(order: Order, field_changes: dict) -> list[str]:
    """Set the editable fields that actually differ; returns their names."""
    unknown = sorted(set(field_changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise InvalidArgument(f"Field(s) not editable: {', '.join(unknown)}.")

    changed: list[str] = []
    for name, value in field_changes.items():
        current = getattr(order, name)
        if name == "quoted_cost":
            value = _to_amount(value)
            if current is not None and Decimal(str(current)) == value:
                continue
        elif name == "currency":
            if not value:
                raise InvalidArgument("currency cannot be empty.")
            value = str(value).upper()
            if current == value:
                continue
        elif current == value:
            continue
        setattr(order, name, value)
        changed.append(name)
    return changed


def submit_edited_order(
    db: Session,
    order_id: int,
    raw_token: str,
    field_changes: dict,
    actor: ActorContext,
) -> EditSubmission:
    """Apply an edit under a released token and route the order onward.

    In one transaction: consume the token (exactly once), apply the field
    changes, recompute the required level when cost or currency changed and
    settle the order status for the resume scenario. Notifications follow
    the commit.
    """
    try:
        token = _check_usable(_find_token(db, raw_token, for_update=True), order_id)
        if actor.user_id != token.requester_id and actor.role != "ADMIN":
            raise Forbidden("Only the user who requested the edit can submit it.")

        now = _now()
        consumed = db.execute(
            update(EditToken)
            .where(EditToken.id == token.id, EditToken.status == EditTokenStatus.released.value)
            .values(status=EditTokenStatus.used.value, used_at=now)
            .execution_options(synchronize_session="evaluate")
        )
        if consumed.rowcount != 1:
            raise InvalidEditToken("Edit token has already been used.")

        entry = ledger_svc.get_entry(db, order_id, for_update=True)
        order = db.get(Order, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found.")

        before = order_svc.snapshot(order)
        previous_required = order.required_auth_level
        changed = _apply_changes(order, field_changes)

        if "quoted_cost" in changed or "currency" in changed:
            cost_eur, new_required = order_svc.price(order.quoted_cost, order.currency)
            order.cost_euros = cost_eur
            if new_required != previous_required:
                approver_directory.resolve_chain(db, order.creator_plant, new_required)
                order.required_auth_level = new_required

        highest = 0
        if entry.act_approv == REJECTED_LEVEL:
            highest = ledger_svc.highest_approved_level(db, order_id)
        resume = determine_resume_point(
            entry.act_approv, previous_required, order.required_auth_level, highest
        )

        if resume.scenario == ResumeScenario.REACTIVATED:
            ledger_svc.advance(
                db,
                order_id,
                actor.user_id,
                resume.act_approv,
                now,
                expected_level=REJECTED_LEVEL,
                action=HistoryAction.REACTIVATED,
                comment=f"Reactivated by edit request #{token.id}",
                commit=False,
            )
        elif resume.next_level is None:
            order.status = OrderStatus.approved.value
        else:
            order.status = OrderStatus.pending.value

        audit_svc.log(
            db=db,
            action="order_edited",
            entity_type="order",
            entity_id=order_id,
            order_id=order_id,
            actor_id=actor.user_id,
            actor_email=actor.email,
            before=before,
            after={**order_svc.snapshot(order), "scenario": resume.scenario.value},
            notes=f"edit token #{token.id}: {token.reason}",
        )
        db.commit()
    except PremiumFreightError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("submit_edited_order failed for order %s", order_id)
        raise TransactionFailed(f"Could not save edits to order {order_id}.") from exc

    logger.info(
        "Edited order submitted: order=%s token=%s changed=%s required %s -> %s scenario=%s",
        order_id, token.id, changed, previous_required, order.required_auth_level, resume.scenario.value,
    )

    if resume.notify == "approver":
        notifications.notify_next_approver(db, order_id)
    else:
        notifications.notify_creator(db, order_id)

    return EditSubmission(
        order=order,
        resume_point=resume,
        changed_fields=changed,
        previous_required_level=previous_required,
    )


def audit_trail(db: Session, order_id: int) -> list:
    """Audit entries of an order, newest first."""
    if db.get(Order, order_id) is None:
        raise NotFound(f"Order {order_id} not found.")
    return audit_svc.entries_for_order(db, order_id)
