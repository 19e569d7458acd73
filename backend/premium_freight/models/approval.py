import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from premium_freight.db.base import Base, CreatedAtMixin, IntPKMixin, TimestampMixin

# Wire/storage value of act_approv for a rejected order.
REJECTED_LEVEL = 99


class HistoryAction(str, enum.Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REACTIVATED = "REACTIVATED"


class ApprovalLedgerEntry(Base, IntPKMixin, TimestampMixin):
    """The single live approval-progress row of an order.

    act_approv: 0 = untouched, 1..N = approved through level N, 99 = rejected.
    """

    __tablename__ = "order_approvals"

    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("premium_freight_orders.id"), nullable=False, unique=True, index=True
    )
    act_approv: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    approval_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(999), nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="ledger")


class ApprovalHistoryRecord(Base, IntPKMixin, CreatedAtMixin):
    """Append-only record of one approval-state transition."""

    __tablename__ = "approval_history"

    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("premium_freight_orders.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)  # APPROVED, REJECTED, REACTIVATED
    level_reached: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    acted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped["User"] = relationship("User", lazy="joined")


class ApprovalActionToken(Base, IntPKMixin, TimestampMixin):
    """HMAC-hashed one-time token behind an email approve/reject link."""

    __tablename__ = "approval_action_tokens"

    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("premium_freight_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("approvers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # approve, reject
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    approver: Mapped["Approver"] = relationship("Approver", lazy="joined")
