import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from premium_freight.db.base import Base, IntPKMixin, TimestampMixin


class EditTokenStatus(str, enum.Enum):
    issued = "issued"      # requested, awaiting reviewer release
    released = "released"  # reviewer released it; usable once
    used = "used"
    expired = "expired"


class EditToken(Base, IntPKMixin, TimestampMixin):
    """Single-use credential that reopens a submitted order for editing."""

    __tablename__ = "edit_tokens"

    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("premium_freight_orders.id"), nullable=False, index=True
    )
    requester_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EditTokenStatus.issued.value
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    released_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
