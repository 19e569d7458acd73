"""Static FX conversion for normalizing quoted freight costs to EUR."""
from decimal import Decimal, InvalidOperation

from premium_freight.core.exceptions import InvalidArgument

REFERENCE_CURRENCY = "EUR"

# Static mid-market rates, units of EUR per 1 unit of currency
# (replace with a rates feed in production)
RATES: dict[str, Decimal] = {
    "EUR": Decimal("1.0"),
    "USD": Decimal("0.92"),
    "MXN": Decimal("0.054"),
    "GBP": Decimal("1.17"),
    "CAD": Decimal("0.68"),
    "CNY": Decimal("0.13"),
    "CZK": Decimal("0.040"),
    "PLN": Decimal("0.23"),
    "CHF": Decimal("1.04"),
    "JPY": Decimal("0.0062"),
}


def convert_to_eur(amount: Decimal | float | str, currency: str) -> Decimal:
    """Convert an amount in the given currency to EUR.

    Raises InvalidArgument for unknown currencies or non-numeric amounts.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"Amount '{amount}' is not numeric.")
    rate = RATES.get((currency or "").upper())
    if rate is None:
        raise InvalidArgument(f"Unsupported currency '{currency}'.")
    return (value * rate).quantize(Decimal("0.0001"))
