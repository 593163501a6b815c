# Overview: Decimal-comma money parsing, validation and formatting.

"""
Prices travel as decimal-comma strings ("1500,50") between the UI and the
API. parse_price/format_price are a matched pair: every value that
format_price emits parses back to the same Decimal.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .validation import ValidationError

MAX_PRICE = Decimal("999999999.99")
CENTS = Decimal("0.01")

# "1.500" or "12.345.678": dots grouping thousands, no decimal part
_DOT_THOUSANDS_RE = re.compile(r"^\d{1,3}(\.\d{3})+$")


def parse_price(value) -> Decimal | None:
    """
    Parse a price typed with a decimal comma.

    "1500,50" -> Decimal("1500.50"); "1.500,50" -> Decimal("1500.50");
    without a comma, dots in groups of three digits are thousands:
    "1.500" -> Decimal("1500"), while "99.9" stays Decimal("99.9").
    Numbers pass through. Blank or unparseable input returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))

    s = str(value).strip().replace(" ", "")
    if not s:
        return None
    if "," in s:
        # "." before a decimal comma is a thousands separator
        s = s.replace(".", "").replace(",", ".")
    elif _DOT_THOUSANDS_RE.match(s):
        s = s.replace(".", "")
    try:
        parsed = Decimal(s)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def validate_price(price: Decimal) -> Decimal:
    """Price must be > 0, <= 999.999.999,99 and have at most two decimals."""
    if price <= 0:
        raise ValidationError("price must be greater than 0")
    if price > MAX_PRICE:
        raise ValidationError(f"price cannot exceed {format_price(MAX_PRICE)}")
    if price.as_tuple().exponent < -2 and price != price.quantize(CENTS):
        raise ValidationError("price cannot have more than 2 decimals")
    return price


def format_price(value) -> str | None:
    """Decimal -> "1500,50" (two decimals, no thousands separator)."""
    if value is None:
        return None
    amount = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"{amount:.2f}".replace(".", ",")


def format_currency(value) -> str:
    """Display format for ARS amounts, e.g. "$ 1.500,50"."""
    amount = Decimal(value or 0).quantize(CENTS, rounding=ROUND_HALF_UP)
    grouped = f"{amount:,.2f}"  # 1,500.50
    return "$ " + grouped.replace(",", "_").replace(".", ",").replace("_", ".")
