"""Amount parsing utilities.

Amounts are kept as integer öre everywhere; ``format_ore`` is the only place
that divides by 100.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

# Bounds of the signed 64-bit integer columns amounts are stored in
MAX_ORE = 2**63 - 1
MIN_ORE = -(2**63)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal in kronor.

    Handles Swedish and international formats:
    - "123.45", "123,45"
    - "-1 234,56" (space or no-break space as thousands separator)
    - "1,234.56" (comma as thousands separator)
    - "4,000" (comma followed by three digits is a thousands separator)
    - "−50,00" (unicode minus)
    - "(123.45)" (negative in parentheses)
    - "123,45 kr", "SEK 123.45"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"(?i)\b(kr|sek)\b|[$€£¥]", "", amount_str)
    amount_str = amount_str.replace("−", "-")
    amount_str = re.sub(r"\s", "", amount_str)

    if "," in amount_str and "." in amount_str:
        amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        after_comma = amount_str[amount_str.rfind(",") + 1:]
        if len(after_comma) <= 2 and after_comma.isdigit():
            amount_str = amount_str.replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def is_ore(value: object) -> bool:
    """Whether ``value`` is an integer öre amount that fits a 64-bit column."""
    return isinstance(value, int) and not isinstance(value, bool) and MIN_ORE <= value <= MAX_ORE


def amount_to_ore(amount: Decimal) -> int:
    """Convert kronor to integer öre, rounding half away from zero.

    Raises:
        ValueError: If the amount does not fit a 64-bit öre column
    """
    try:
        ore = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"Amount {amount} is out of range") from e
    if not MIN_ORE <= ore <= MAX_ORE:
        raise ValueError(f"Amount {amount} is out of range")
    return ore


def parse_amount_ore(amount_str: str) -> int:
    """Parse an amount string straight into öre."""
    return amount_to_ore(parse_amount(amount_str))


def format_ore(ore: int, currency: str = "kr") -> str:
    """Format öre for display, e.g. ``-123456`` -> ``"-1 234,56 kr"``."""
    sign = "-" if ore < 0 else ""
    kronor, rest = divmod(abs(int(ore)), 100)
    grouped = f"{kronor:,}".replace(",", " ")
    text = f"{sign}{grouped},{rest:02d}"
    return f"{text} {currency}" if currency else text
