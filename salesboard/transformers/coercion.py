"""
Cell coercion helpers.

Turn a raw spreadsheet cell (None, number, text or date-like) into the
typed value stored in the sales table. Every function returns ``None``
instead of raising when the input cannot be interpreted.
"""

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from numbers import Integral, Number
from typing import Any, Optional, Tuple

from dateutil import parser as date_parser

# Day zero of spreadsheet serial dates. Using 1899-12-30 rather than
# 1899-12-31 absorbs the fictitious 1900-02-29, so serials from 61 on
# land on the same calendar day the spreadsheet shows.
EXCEL_EPOCH = datetime(1899, 12, 30)

# Fixed fallback for partial dates ("May 2024"), keeps parsing independent of the clock
_PARSE_DEFAULT = datetime(1900, 1, 1)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_PLAIN_NUMBER = re.compile(r"-?\d+(\.\d+)?")


def _is_numeric(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def is_blank(value: Any) -> bool:
    """True for None, NaN and empty or whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def coerce_date(value: Any) -> Optional[date]:
    """
    Convert a cell to a calendar date.

    Args:
        value: Serial day count, date text, ``date``/``datetime`` or None

    Returns:
        The date, or None when the value is empty or not a date
    """
    if is_blank(value):
        return None

    if isinstance(value, datetime):
        try:
            return value.date()
        except ValueError:
            return None

    if isinstance(value, date):
        return value

    if isinstance(value, str) and _PLAIN_NUMBER.fullmatch(value.strip()):
        # serial number exported as text
        value = float(value.strip())

    if _is_numeric(value):
        try:
            days = float(value)
            if not math.isfinite(days):
                return None
            return (EXCEL_EPOCH + timedelta(days=days)).date()
        except (OverflowError, ValueError, TypeError):
            return None

    if isinstance(value, str):
        try:
            return date_parser.parse(value.strip(), default=_PARSE_DEFAULT).date()
        except (date_parser.ParserError, ValueError, OverflowError):
            return None

    return None


def coerce_number(value: Any) -> Optional[Decimal]:
    """
    Convert a cell to a decimal number.

    Text is stripped of everything except digits, dots and minus signs
    before parsing, so ``"$1,234.50"`` becomes ``Decimal("1234.50")``.
    Unparseable input yields None, never zero.
    """
    if is_blank(value):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if _is_numeric(value):
        if isinstance(value, Integral):
            return Decimal(int(value))
        number = float(value)
        if not math.isfinite(number):
            return None
        # str() keeps the shortest repr, so 0.1 stays 0.1
        return Decimal(str(number))

    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None

    return None


def coerce_text(value: Any) -> Optional[str]:
    """Stringify and trim a cell; empty values become None."""
    if is_blank(value):
        return None

    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, datetime):
        text = value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    elif isinstance(value, date):
        text = value.isoformat()
    else:
        text = str(value)

    text = text.strip()
    return text or None


def derive_period(value: Optional[date]) -> Tuple[Optional[int], Optional[str]]:
    """
    Derive ``(year, quarter)`` from a date.

    Both are None when the date is None, never just one of them.
    """
    if value is None:
        return None, None
    return value.year, f"Q{(value.month - 1) // 3 + 1}"
