"""Shared utilities used across the scheduling core."""

import re
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def normalize_email(value: str) -> str:
    """Normalize an email address for storage and comparison.

    Examples:
        >>> normalize_email("  Jane.Doe@Example.COM ")
        'jane.doe@example.com'
    """
    return re.sub(r"\s+", "", value).lower()


def to_money(value) -> Decimal:
    """Quantize a number to two decimal places using half-up rounding."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(value, symbol: str = "$") -> str:
    """Format an amount for display.

    Examples:
        >>> format_currency(Decimal("120"))
        '$120.00'
    """
    return f"{symbol}{to_money(value):,.2f}"
