# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import math
from datetime import datetime, timedelta

from spend_governance.errors import InvalidPeriodError

_ONE_MS = timedelta(milliseconds=1)
_SECONDS_PER_DAY = 86_400


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _first_of_month(year: int, month: int, like: datetime) -> datetime:
    """Midnight on the first of ``month``, normalising month overflow."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return _start_of_day(like).replace(year=year, month=month, day=1)


def get_period_dates(
    period: str,
    reference_date: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Calculate the inclusive bounds of the period containing a date.

    Bounds follow the calendar of ``reference_date`` (naive datetimes are
    local wall-clock time; aware ones keep their tzinfo):

    - ``daily``: midnight to midnight.
    - ``weekly``: Monday 00:00 to the following Monday.
    - ``monthly`` / ``quarterly`` / ``yearly``: calendar boundaries.

    The end bound is the start of the next period minus one millisecond.

    Args:
        period: One of ``'daily'``, ``'weekly'``, ``'monthly'``,
            ``'quarterly'`` or ``'yearly'``.
        reference_date: Any instant inside the wanted period. Defaults to now.

    Returns:
        A ``(start, end)`` tuple.

    Raises:
        InvalidPeriodError: If ``period`` has no calendar bounds, including
            ``'custom'``.
    """
    reference = reference_date or datetime.now()

    if period == "daily":
        start = _start_of_day(reference)
        next_start = start + timedelta(days=1)
    elif period == "weekly":
        start = _start_of_day(reference) - timedelta(days=reference.weekday())
        next_start = start + timedelta(days=7)
    elif period == "monthly":
        start = _first_of_month(reference.year, reference.month, reference)
        next_start = _first_of_month(reference.year, reference.month + 1, reference)
    elif period == "quarterly":
        first_month = (reference.month - 1) // 3 * 3 + 1
        start = _first_of_month(reference.year, first_month, reference)
        next_start = _first_of_month(reference.year, first_month + 3, reference)
    elif period == "yearly":
        start = _first_of_month(reference.year, 1, reference)
        next_start = _first_of_month(reference.year + 1, 1, reference)
    else:
        raise InvalidPeriodError(period)

    return start, next_start - _ONE_MS


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, rounded up (negative if reversed)."""
    return math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)


def next_period_start(period: str, reference_date: datetime | None = None) -> datetime:
    """
    Return the first instant of the period after the one containing
    ``reference_date``.

    Raises:
        InvalidPeriodError: If ``period`` has no calendar bounds.
    """
    _, end = get_period_dates(period, reference_date)
    return end + _ONE_MS


def is_period_expired(period_end: datetime, as_of: datetime | None = None) -> bool:
    """Return True once ``as_of`` (default now) is past ``period_end``."""
    reference = as_of or datetime.now(tz=period_end.tzinfo)
    return reference > period_end
