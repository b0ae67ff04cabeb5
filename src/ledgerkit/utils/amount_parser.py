"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

from ledgerkit.domain.errors import ValidationError, invalid_amount


def require_finite(amount: Decimal) -> Decimal:
    """Return amount unchanged, rejecting NaN and infinities.

    Raises:
        ValidationError: If amount is not a finite number
    """
    if not isinstance(amount, Decimal):
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(invalid_amount(amount))
    if not amount.is_finite():
        raise ValidationError(invalid_amount(amount))
    return amount


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
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

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValidationError(f"Could not parse amount '{amount_str}'")

    amount = require_finite(amount)
    return -amount if is_negative else amount
