"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation


def _normalize_separators(amount_str: str) -> str:
    """Rewrite an amount with either separator convention to plain '1234.56'."""
    if "," in amount_str and "." in amount_str:
        # Whichever separator comes last is the decimal one
        if amount_str.rfind(",") > amount_str.rfind("."):
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")

    if "," in amount_str:
        if amount_str.count(",") == 1 and re.search(r",\d{1,2}$", amount_str):
            return amount_str.replace(",", ".")
        return amount_str.replace(",", "")

    if amount_str.count(".") > 1:
        return amount_str.replace(".", "")
    return amount_str


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles both decimal conventions:
    - "1234.56", "1,234.56"
    - "1234,56", "1.234,56", "R$ 1.234,56"
    - "-10", "(10,00)" (negative in parentheses)

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

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"R\$|[$€£¥]|\s", "", amount_str)
    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]

    normalized = _normalize_separators(amount_str)
    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'") from None
    return -amount if is_negative else amount
