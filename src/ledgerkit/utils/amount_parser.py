"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

CURRENCY_SYMBOLS = re.compile(r"^(?:R|ZAR|USD|EUR|GBP)\s*|[$€£¥]")
SIDE_SUFFIX = re.compile(r"\s*(CR|DR)$", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Parse a bank-statement amount into a Decimal rounded to cents.

    Handles:
    - "1200.00", "1,200.00", "479 507.94"
    - "R 1200.00", "$1,200.00"
    - "-1200.00", "(1200.00)" (negative in parentheses)
    - "1200.00 Cr" / "1200.00 Dr" (Dr is negative)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount with two decimal places

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    is_negative = False

    suffix = SIDE_SUFFIX.search(text)
    if suffix:
        is_negative = suffix.group(1).upper() == "DR"
        text = text[: suffix.start()]

    if text.startswith("(") and text.endswith(")"):
        is_negative = not is_negative
        text = text[1:-1]

    text = CURRENCY_SYMBOLS.sub("", text.strip().upper())
    text = text.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    amount = amount.quantize(Decimal("0.01"))
    return -amount if is_negative else amount


def parse_positive_amount(amount_str: str) -> Decimal:
    """Parse an amount that must be greater than zero.

    Raises:
        ValueError: If the string cannot be parsed or is not positive
    """
    amount = parse_amount(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount must be positive (got {amount})")
    return amount
