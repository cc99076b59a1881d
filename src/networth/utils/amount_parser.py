"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Optional

from networth.domain.errors import ValidationError


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValidationError: If amount string cannot be parsed or is not finite
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # "-$12" and "$-12" both mean negative twelve
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount_str}': {e!r}")

    if not amount.is_finite():
        raise ValidationError(f"Amount must be a finite number, got '{amount_str}'")

    return -amount if is_negative else amount


def parse_optional_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Parse an amount, passing None through."""
    if amount_str is None:
        return None
    return parse_amount(amount_str)
