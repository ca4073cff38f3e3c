"""Calendar-aware time helpers."""

import calendar
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift a datetime by whole calendar months.

    The day is clamped to the last day of the target month, so
    2025-03-31 minus one month is 2025-02-28.

    Args:
        moment: Starting point
        months: Number of months to add (negative to go back)

    Returns:
        The shifted datetime, same time of day and tzinfo
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
