"""Tagged approval state of an order.

The ledger stores a single integer (``act_approv``) for wire and storage
compatibility: 0..N for progress and 99 for rejected. Business code works
with these explicit states instead.
"""
from dataclasses import dataclass

from premium_freight.models.approval import REJECTED_LEVEL


@dataclass(frozen=True)
class Pending:
    """Approved through ``level`` (0 = untouched); awaiting ``level + 1``."""

    level: int

    @property
    def next_level(self) -> int:
        return self.level + 1


@dataclass(frozen=True)
class Approved:
    """Reached (or passed) the required level. Terminal."""

    level: int


@dataclass(frozen=True)
class Rejected:
    """Rejected at some level. Terminal until an edit reactivates it."""

    reason: str | None = None


ApprovalState = Pending | Approved | Rejected


def from_ledger(act_approv: int, required_level: int, rejection_reason: str | None = None) -> ApprovalState:
    if act_approv == REJECTED_LEVEL:
        return Rejected(rejection_reason)
    if act_approv >= required_level:
        return Approved(act_approv)
    return Pending(act_approv)


def to_wire(state: ApprovalState) -> int:
    """Serialize back to the stored act_approv value."""
    if isinstance(state, Rejected):
        return REJECTED_LEVEL
    return state.level


def is_terminal(state: ApprovalState) -> bool:
    return isinstance(state, (Approved, Rejected))
