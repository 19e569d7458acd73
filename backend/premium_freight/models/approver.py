"""Approver directory: which user holds which approval rung, per plant or regionally."""
from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from premium_freight.db.base import Base, IntPKMixin, TimestampMixin

MIN_APPROVAL_LEVEL = 1
MAX_APPROVAL_LEVEL = 8

APPROVAL_LEVEL_NAMES: dict[int, str] = {
    1: "Traffic",
    2: "Transportation",
    3: "Logistics Manager",
    4: "Controlling",
    5: "Plant Manager",
    6: "Senior Manager Logistics Division",
    7: "Manager OPS Division",
    8: "SR VP Regional",
}


def level_name(level: int) -> str:
    return APPROVAL_LEVEL_NAMES.get(level, f"Level {level}")


class Approver(Base, IntPKMixin, TimestampMixin):
    """A user's approval role. ``plant`` null means regional (all plants)."""

    __tablename__ = "approvers"
    __table_args__ = (
        UniqueConstraint("user_id", "approval_level", "plant", name="uq_approvers_user_level_plant"),
        CheckConstraint(
            f"approval_level BETWEEN {MIN_APPROVAL_LEVEL} AND {MAX_APPROVAL_LEVEL}",
            name="ck_approvers_level_range",
        ),
    )

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approval_level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    plant: Mapped[str | None] = mapped_column(String(50), nullable=True)

    user: Mapped["User"] = relationship("User", lazy="joined")

    @property
    def charge_name(self) -> str:
        return level_name(self.approval_level)

    @property
    def display_name(self) -> str:
        scope = f"Plant {self.plant}" if self.plant is not None else "Regional"
        return f"{self.charge_name} - {scope}"
