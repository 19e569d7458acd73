import enum

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from premium_freight.db.base import Base, IntPKMixin, TimestampMixin


class OrderStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Fields a released edit token may change.
EDITABLE_FIELDS = (
    "description",
    "area",
    "transport",
    "in_out_bound",
    "category_cause",
    "carrier",
    "quoted_cost",
    "currency",
)


class Order(Base, IntPKMixin, TimestampMixin):
    """A Premium Freight order awaiting (or past) multi-level approval."""

    __tablename__ = "premium_freight_orders"

    reference_number: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    plant: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)  # creator's plant at creation
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    transport: Mapped[str | None] = mapped_column(String(50), nullable=True)
    in_out_bound: Mapped[str | None] = mapped_column(String(20), nullable=True)
    category_cause: Mapped[str | None] = mapped_column(String(100), nullable=True)
    carrier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quoted_cost: Mapped[float] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    cost_euros: Mapped[float] = mapped_column(Numeric(18, 4), nullable=False)
    required_auth_level: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.pending.value
    )  # pending, approved, rejected

    creator: Mapped["User"] = relationship("User", lazy="joined")
    ledger: Mapped["ApprovalLedgerEntry"] = relationship(
        "ApprovalLedgerEntry", back_populates="order", uselist=False, lazy="joined"
    )

    @property
    def act_approv(self) -> int:
        return self.ledger.act_approv if self.ledger is not None else 0

    @property
    def creator_plant(self) -> str | None:
        """Plant that scopes approvals: the creator's, falling back to the stored one."""
        if self.creator is not None:
            return self.creator.plant
        return self.plant
