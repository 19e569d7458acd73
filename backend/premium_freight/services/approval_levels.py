"""Required approval level for a freight cost normalized to EUR."""
import math
from decimal import Decimal, InvalidOperation

from premium_freight.core.exceptions import InvalidArgument

# (inclusive upper bound in EUR, required level); anything above the last bound needs TOP_LEVEL
APPROVAL_TIERS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("1500"), 5),
    (Decimal("5000"), 6),
    (Decimal("10000"), 7),
)
TOP_LEVEL = 8


def required_approval_level(cost_eur) -> int:
    """Return the minimum approval level that fully clears an order of this cost.

    ≤1500 → 5, ≤5000 → 6, ≤10000 → 7, >10000 → 8.
    Raises InvalidArgument for negative or non-numeric input.
    """
    if isinstance(cost_eur, bool) or cost_eur is None:
        raise InvalidArgument(f"Cost must be a number, got {cost_eur!r}.")
    if isinstance(cost_eur, float) and not math.isfinite(cost_eur):
        raise InvalidArgument(f"Cost must be a finite number, got {cost_eur!r}.")
    try:
        cost = Decimal(str(cost_eur))
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"Cost must be a number, got {cost_eur!r}.")
    if not cost.is_finite():
        raise InvalidArgument(f"Cost must be a finite number, got {cost_eur!r}.")
    if cost < 0:
        raise InvalidArgument(f"Cost cannot be negative, got {cost_eur!r}.")

    for upper_bound, level in APPROVAL_TIERS:
        if cost <= upper_bound:
            return level
    return TOP_LEVEL
