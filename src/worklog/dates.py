"""Parsing of human-entered date and time expressions.

Date expressions resolve to the start or the end of the period they name:

- ``2024-03-05`` is that day either way
- ``2024-03`` is March 1st or March 31st
- ``2024`` is January 1st or December 31st
- ``2024-Q2`` / ``2024-q2`` is April 1st or June 30th
- ``Q2`` / ``q2`` is the same quarter of the current year

The patterns are tried in this order and each must match the whole input,
ASCII digits only.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, time, timedelta
from typing import Optional

from .errors import DateExpressionError

MAX_EXPRESSION_LENGTH = 10

_FULL_DATE = re.compile(r"([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})")
_YEAR_MONTH = re.compile(r"([0-9]{4})-([0-9]{1,2})")
_YEAR = re.compile(r"([0-9]{4})")
_YEAR_QUARTER = re.compile(r"([0-9]{4})-[qQ]([0-9])")
_QUARTER = re.compile(r"[qQ]([0-9])")

_TIME = re.compile(r"[0-9]{1,2}:[0-9]{2}(?::[0-9]{2})?|[0-9]{3,6}")


def _month_bounds(year: int, month: int, from_beginning: bool) -> date:
    if from_beginning:
        return date(year, month, 1)
    return date(year, month, calendar.monthrange(year, month)[1])


def _quarter_bounds(year: int, quarter: int, from_beginning: bool) -> Optional[date]:
    if not 1 <= quarter <= 4:
        return None
    first_month = (quarter - 1) * 3 + 1
    if from_beginning:
        return date(year, first_month, 1)
    return _month_bounds(year, first_month + 2, False)


def parse_date(expr: Optional[str], from_beginning: bool = True, today: Optional[date] = None) -> Optional[date]:
    """Best effort parsing of a date expression.

    Args:
        expr: The expression, e.g. ``2024-Q1``
        from_beginning: Resolve to the first day of the period if True,
            to the last day otherwise
        today: Reference date for the bare quarter form, defaults to today

    Returns:
        The resolved date, or None if the expression is not understood
    """
    if not expr or len(expr) > MAX_EXPRESSION_LENGTH:
        return None

    try:
        match = _FULL_DATE.fullmatch(expr)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return date(year, month, day)

        match = _YEAR_MONTH.fullmatch(expr)
        if match:
            year, month = (int(g) for g in match.groups())
            return _month_bounds(year, month, from_beginning)

        match = _YEAR.fullmatch(expr)
        if match:
            year = int(match.group(1))
            return date(year, 1, 1) if from_beginning else date(year, 12, 31)

        match = _YEAR_QUARTER.fullmatch(expr)
        if match:
            year, quarter = (int(g) for g in match.groups())
            return _quarter_bounds(year, quarter, from_beginning)

        match = _QUARTER.fullmatch(expr)
        if match:
            year = (today or date.today()).year
            return _quarter_bounds(year, int(match.group(1)), from_beginning)
    except ValueError:
        # Month 13, February 30th and the like
        return None

    return None


def parse_date_strict(expr: Optional[str], from_beginning: bool = True, today: Optional[date] = None) -> date:
    """Like :func:`parse_date` but raise instead of returning None.

    Raises:
        DateExpressionError: If the expression is not understood
    """
    parsed = parse_date(expr, from_beginning, today=today)
    if parsed is None:
        raise DateExpressionError(f'Could not parse date string: "{expr}"')
    return parsed


def parse_time(text: str) -> time:
    """Parse a wall clock time given as HHMM, HH:MM or HH:MM:SS.

    Raises:
        DateExpressionError: If the format is not recognised or out of range
    """
    if not text or not _TIME.fullmatch(text):
        raise DateExpressionError("Invalid time format. Expected HHMM, HH:MM, or HH:MM:SS.")

    if ":" in text:
        parts = [int(p) for p in text.split(":")]
        hour, minute = parts[0], parts[1]
        second = parts[2] if len(parts) == 3 else 0
    else:
        digits = text.zfill(4) if len(text) <= 4 else text.zfill(6)
        hour, minute = int(digits[0:2]), int(digits[2:4])
        second = int(digits[4:6]) if len(digits) == 6 else 0

    try:
        return time(hour, minute, second)
    except ValueError as e:
        raise DateExpressionError(f"Invalid time {text!r}: {e}") from None


def resolve_range(
    days: Optional[int] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    on: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[date, Optional[date]]:
    """Turn the usual range options into an inclusive ``(start, end)``.

    Exactly one style is used, checked in this order: ``days`` back from
    today, ``date_from``/``date_to`` expressions, or a single ``on`` date.
    ``end`` is None when only ``date_from`` is given, meaning "until today".

    Raises:
        DateExpressionError: If no option is set, ``days`` is negative or
            an expression cannot be parsed
    """
    today = today or date.today()

    if days is not None:
        if days < 0:
            raise DateExpressionError("Number of days cannot be negative")
        return today - timedelta(days=days), today

    if date_from:
        start = parse_date_strict(date_from, True, today=today)
        end = parse_date_strict(date_to, False, today=today) if date_to else None
        return start, end

    if on:
        match = _FULL_DATE.fullmatch(on)
        if not match:
            raise DateExpressionError(f'Expected a date as YYYY-MM-DD, got "{on}"')
        single = parse_date_strict(on, True, today=today)
        return single, single

    raise DateExpressionError("No date range specified. Use days, date_from/date_to or on.")
