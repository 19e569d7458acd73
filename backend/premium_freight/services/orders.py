"""Order creation and lookup."""
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.exceptions import (
    Forbidden,
    InvalidArgument,
    NotFound,
    TransactionFailed,
)
from premium_freight.models.order import Order, OrderStatus
from premium_freight.services import approver_directory, fx
from premium_freight.services import audit as audit_svc
from premium_freight.services import ledger as ledger_svc
from premium_freight.services.approval_levels import required_approval_level

logger = logging.getLogger(__name__)

# Approvers from this level up may look at orders of any plant.
CROSS_PLANT_VIEW_LEVEL = 4

# quoted_cost is stored as Numeric(18, 2)
CENTS = Decimal("0.01")


def snapshot(order: Order) -> dict:
    """JSON-serialisable view of the fields an edit may change."""
    return {
        "description": order.description,
        "area": order.area,
        "transport": order.transport,
        "in_out_bound": order.in_out_bound,
        "category_cause": order.category_cause,
        "carrier": order.carrier,
        "quoted_cost": str(order.quoted_cost),
        "currency": order.currency,
        "cost_euros": str(order.cost_euros),
        "required_auth_level": order.required_auth_level,
        "status": order.status,
    }


def quantize_cost(quoted_cost) -> Decimal:
    """Round a quoted cost half-up to cents, the precision it is stored and priced at."""
    if isinstance(quoted_cost, bool) or quoted_cost is None:
        raise InvalidArgument(f"Quoted cost must be a number, got {quoted_cost!r}.")
    try:
        amount = Decimal(str(quoted_cost))
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"Quoted cost must be a number, got {quoted_cost!r}.")
    if not amount.is_finite():
        raise InvalidArgument(f"Quoted cost must be a finite number, got {quoted_cost!r}.")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def price(quoted_cost, currency: str) -> tuple[Decimal, int]:
    """Return (cost in EUR, required approval level) for a quoted cost."""
    cost_eur = fx.convert_to_eur(quoted_cost, currency)
    return cost_eur, required_approval_level(cost_eur)


def create_order(
    db: Session,
    actor: ActorContext,
    quoted_cost,
    currency: str = fx.REFERENCE_CURRENCY,
    reference_number: str | None = None,
    description: str | None = None,
    area: str | None = None,
    transport: str | None = None,
    in_out_bound: str | None = None,
    category_cause: str | None = None,
    carrier: str | None = None,
) -> Order:
    """Create an order, seed its ledger at 0 and commit.

    The approver chain for every level up to the required one must resolve
    for the creator's plant, otherwise IncompleteApproverChain is raised and
    nothing is written.
    """
    currency = (currency or "").upper()
    quoted_cost = quantize_cost(quoted_cost)
    if quoted_cost <= 0:
        raise InvalidArgument("Quoted cost must be greater than zero.")
    cost_eur, level = price(quoted_cost, currency)
    approver_directory.resolve_chain(db, actor.plant, level)

    try:
        order = Order(
            reference_number=reference_number,
            creator_id=actor.user_id,
            plant=actor.plant,
            description=description,
            area=area,
            transport=transport,
            in_out_bound=in_out_bound,
            category_cause=category_cause,
            carrier=carrier,
            quoted_cost=quoted_cost,
            currency=currency,
            cost_euros=cost_eur,
            required_auth_level=level,
            status=OrderStatus.pending.value,
        )
        db.add(order)
        db.flush()
        ledger_svc.seed(db, order)

        audit_svc.log(
            db=db,
            action="order_created",
            entity_type="order",
            entity_id=order.id,
            order_id=order.id,
            actor_id=actor.user_id,
            actor_email=actor.email,
            after=snapshot(order),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("create_order failed for user %s", actor.user_id)
        raise TransactionFailed("Could not create order.") from exc

    db.refresh(order)
    logger.info(
        "Order created: id=%s creator=%s plant=%s cost_eur=%s required_level=%s",
        order.id, actor.user_id, actor.plant, cost_eur, level,
    )
    return order


def ensure_can_view(actor: ActorContext, order: Order) -> None:
    """Plant-scoped users below Controlling only see their own plant's orders."""
    if actor.user_id == order.creator_id or actor.role == "ADMIN":
        return
    if (
        actor.authorization_level < CROSS_PLANT_VIEW_LEVEL
        and actor.plant
        and actor.plant != order.creator_plant
    ):
        raise Forbidden(f"You do not have access to order {order.id}.")


def get_order(db: Session, order_id: int, actor: ActorContext | None = None) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    if actor is not None:
        ensure_can_view(actor, order)
    return order
