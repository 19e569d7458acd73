"""Typed filters for order listings.

``OrderFilter`` is validated once and translated into SQLAlchemy
expressions; no caller assembles WHERE clauses by hand.
"""
from dataclasses import dataclass

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session

from premium_freight.core.exceptions import InvalidArgument
from premium_freight.models.approval import REJECTED_LEVEL, ApprovalLedgerEntry
from premium_freight.models.approver import MAX_APPROVAL_LEVEL, MIN_APPROVAL_LEVEL
from premium_freight.models.order import Order
from premium_freight.models.user import User

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class OrderFilter:
    approval_level: int
    plant: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20

    def validate(self) -> "OrderFilter":
        if not MIN_APPROVAL_LEVEL <= self.approval_level <= MAX_APPROVAL_LEVEL:
            raise InvalidArgument(
                f"approval_level must be between {MIN_APPROVAL_LEVEL} and {MAX_APPROVAL_LEVEL}."
            )
        if self.page < 1:
            raise InvalidArgument("page must be 1 or greater.")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise InvalidArgument(f"limit must be between 1 and {MAX_PAGE_SIZE}.")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def conditions(self) -> list:
        """WHERE expressions selecting orders awaiting exactly ``approval_level``."""
        conds = [
            ApprovalLedgerEntry.act_approv == self.approval_level - 1,
            ApprovalLedgerEntry.act_approv != REJECTED_LEVEL,
            ApprovalLedgerEntry.act_approv < Order.required_auth_level,
        ]
        if self.plant:
            # creator's current plant
            conds.append(Order.creator.has(User.plant == self.plant))
        term = (self.search or "").strip()
        if term:
            pattern = f"%{term}%"
            conds.append(
                or_(
                    cast(Order.id, String).ilike(pattern),
                    Order.description.ilike(pattern),
                    Order.reference_number.ilike(pattern),
                )
            )
        return conds

    def as_dict(self) -> dict:
        return {
            "approval_level": self.approval_level,
            "plant": self.plant,
            "search": self.search,
        }


@dataclass
class OrderPage:
    items: list[Order]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


def orders_awaiting_level(db: Session, flt: OrderFilter) -> OrderPage:
    """Orders whose next pending approval is ``flt.approval_level``, oldest first."""
    flt.validate()
    conds = flt.conditions()

    total = db.execute(
        select(func.count(Order.id))
        .join(ApprovalLedgerEntry, ApprovalLedgerEntry.order_id == Order.id)
        .where(*conds)
    ).scalar() or 0

    items = db.execute(
        select(Order)
        .join(ApprovalLedgerEntry, ApprovalLedgerEntry.order_id == Order.id)
        .where(*conds)
        .order_by(Order.created_at.asc(), Order.id.asc())
        .offset(flt.offset)
        .limit(flt.limit)
    ).scalars().unique().all()

    return OrderPage(items=list(items), total=total, page=flt.page, limit=flt.limit)
