"""
Clock and calendar helpers.

Timestamps are stored as naive UTC datetimes.
"""
import calendar
from datetime import UTC, date, datetime


def utcnow():
    """Return the current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def today(clock=utcnow):
    """Return the current date according to ``clock``."""
    return clock().date()


def add_months(start, months):
    """
    Add calendar months to a date, clamping the day to the target month.

    Args:
        start (date): Starting date
        months (int): Number of months to add

    Returns:
        date: The shifted date (e.g. Jan 31 + 1 month -> Feb 28/29)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
