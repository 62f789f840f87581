"""Utility functions for the mortgage calculators.

This module provides helpers for turning user input into ``Decimal`` values
and for handling dates, including adding months, counting whole months
between two dates and normalizing year-month strings to ``datetime.date``
instances.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float, str, Decimal]

_ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Convert a plain number into a ``Decimal``.

    Floats go through their shortest string representation so that ``7.5``
    becomes ``Decimal("7.5")`` rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a numeric amount")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    return decimal_from_str(value)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.strip().replace(",", "")
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_number(value: object) -> Decimal:
    """Coerce a form field into a number.

    Blank fields and the partial tokens a user leaves behind mid-edit
    (``"-"``, ``"."``) count as zero, as does anything non-numeric.
    """
    if value is None:
        return _ZERO
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        result = to_decimal(value)
        return result if result.is_finite() else _ZERO
    text = str(value).strip()
    if text in ("", "-", "."):
        return _ZERO
    try:
        result = Decimal(text.replace(",", ""))
    except InvalidOperation:
        return _ZERO
    return result if result.is_finite() else _ZERO


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("500,000"), a
    leading dollar sign and shorthand with ``k``/``m`` suffixes (e.g., "500k"
    meaning 500_000).
    """
    text = value.strip().lower().replace(",", "").lstrip("$")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    try:
        return Decimal(text) * factor
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value}") from exc


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except (ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, never negative.

    A month only counts once its day of the month has been reached, so a loan
    that started on the 15th has not completed a month on the 14th.
    """
    total = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        total -= 1
    return max(0, total)
