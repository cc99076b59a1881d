"""Display formatting for currency amounts and percentage changes."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

NOT_APPLICABLE = "~"

_ONE_DECIMAL = Decimal("0.1")


def round_percent(value: Decimal) -> Decimal:
    """Round half away from zero to one decimal place."""
    # Decimal's ROUND_HALF_UP rounds ties away from zero for both signs
    return value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def format_percent(value: Optional[Decimal]) -> str:
    """Format a percentage change for display.

    Examples:
        Decimal("14.2857") -> "+14.3%"
        Decimal("400") -> "+400%"
        Decimal("-6.25") -> "-6.3%"
        Decimal("0") -> "0%"
        None -> "~" (baseline of zero, change not applicable)
    """
    if value is None:
        return NOT_APPLICABLE

    rounded = round_percent(value)
    if rounded == 0:
        return "0%"

    text = f"{abs(rounded):f}"
    if text.endswith(".0"):
        text = text[:-2]

    sign = "+" if rounded > 0 else "-"
    return f"{sign}{text}%"


def format_currency(value: Optional[Decimal], places: int = 2) -> str:
    """Format an amount as dollars with thousands separators, e.g. -$1,000.00."""
    amount = Decimal(value) if value is not None else Decimal("0")
    if not amount.is_finite():
        amount = Decimal("0")
    quantum = Decimal(1).scaleb(-places)
    amount = amount.quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"${abs(amount):,.{places}f}"
    return f"-{text}" if amount < 0 else text
