"""Resolve an analysis type into the current period and the comparable one before it."""

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

from errors import InvalidRangeError, ValidationError
from schemas import Period


def week_start(day: date) -> date:
    """Most recent Sunday on or before ``day`` (weeks run Sunday to Saturday)."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_bounds(year: int, month: int) -> Period:
    last_day = calendar.monthrange(year, month)[1]
    return Period(start=date(year, month, 1), end=date(year, month, last_day))


def resolve_periods(
    analysis_type: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Tuple[Period, Period]:
    """Return ``(current, previous)`` closed date intervals for an analysis type.

    Explicit bounds are only read for ``custom``; a missing bound defaults to
    ``today``.  The previous custom window has the same span and ends the day
    before the current one starts.
    """
    today = today or date.today()

    if analysis_type == "weekly":
        start = week_start(today)
        current = Period(start=start, end=start + timedelta(days=6))
        previous = Period(start=start - timedelta(days=7), end=start - timedelta(days=1))
    elif analysis_type == "monthly":
        current = month_bounds(today.year, today.month)
        prev_end = current.start - timedelta(days=1)
        previous = month_bounds(prev_end.year, prev_end.month)
    elif analysis_type == "yearly":
        current = Period(start=date(today.year, 1, 1), end=date(today.year, 12, 31))
        previous = Period(start=date(today.year - 1, 1, 1), end=date(today.year - 1, 12, 31))
    elif analysis_type == "custom":
        start = start_date or today
        end = end_date or today
        if start > end:
            raise InvalidRangeError(
                f"Start date {start.isoformat()} is after end date {end.isoformat()}",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )
        current = Period(start=start, end=end)
        prev_end = start - timedelta(days=1)
        previous = Period(start=prev_end - timedelta(days=current.days - 1), end=prev_end)
    else:
        raise ValidationError(f"Unknown analysis type: {analysis_type}")

    return current, previous
