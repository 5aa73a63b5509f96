"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from propfin.domain.errors import ValidationError


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses, as accounting exports write it)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValidationError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValidationError("Empty amount string")

    amount_str = str(amount_str).strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Only USD figures are expected; symbols are cosmetic
    amount_str = re.sub(r"[$]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount_str}': {e!r}")

    if not amount.is_finite():
        raise ValidationError(f"Could not parse amount '{amount_str}': not a finite number")
    return -amount if is_negative else amount
