"""
Calendar arithmetic shared by the occurrence generators.

Distances are measured between ordered dates in whole days, weeks, months
or years. ``start_adder`` turns such a distance into the number of units
needed to land back on the rule's cadence, which lets every generator jump
straight to the query window instead of walking from the rule's start.
"""

import math
from datetime import date, datetime, timedelta

from .rules import InvalidIntervalError

ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=7)


def to_midnight(value) -> datetime:
    """Return the calendar day of ``value`` at 00:00 without time zone.

    The wall-clock day is kept as is; aware datetimes are not converted.
    """
    return datetime(value.year, value.month, value.day)


def as_naive(value) -> datetime:
    """Make a window bound comparable with the engine's naive cursor.

    Plain dates become midnight; aware datetimes keep their wall time.
    """
    if not isinstance(value, datetime):
        return to_midnight(value)
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def sunday_weekday(value: date) -> int:
    """Weekday number with Sunday=0 ... Saturday=6."""
    return value.isoweekday() % 7


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def week_start(value: datetime) -> datetime:
    """The Sunday that opens the week of ``value``, keeping its time of day."""
    return value - timedelta(days=sunday_weekday(value))


def month_start(value: datetime) -> datetime:
    return value.replace(day=1)


def elapsed_days(start: datetime, end: datetime) -> int:
    # A window starting at midnight still counts the partial day.
    return math.ceil((end - start) / ONE_DAY)


def elapsed_weeks(start: datetime, end: datetime) -> int:
    return math.floor((end - start) / ONE_WEEK)


def elapsed_months(start: date, end: date) -> int:
    """Whole months from ``start`` to ``end``; negative when end precedes start."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def elapsed_years(start: date, end: date) -> int:
    years = end.year - start.year
    if end.month < start.month:
        years -= 1
    return years


def start_adder(elapsed: int, interval: int) -> int:
    """Smallest non-negative count that brings ``elapsed`` onto the cadence.

    >>> start_adder(10, 3)
    2
    >>> start_adder(9, 3)
    0
    """
    if interval < 1:
        raise InvalidIntervalError(f"Interval must be positive: {interval}")
    remainder = elapsed % interval
    if remainder == 0:
        return 0
    return interval - remainder


def count_weekdays(days: int, first: datetime) -> int:
    """Number of Monday-Friday dates in ``(first, first + days]``."""
    weeks = days // 7
    weekdays = weeks * 5
    extra_days = days - weeks * 7
    for i in range(1, extra_days + 1):
        if not is_weekend(first + timedelta(days=i)):
            weekdays += 1
    return weekdays


def add_weekdays(count: int, start: datetime) -> datetime:
    """Advance ``start`` by exactly ``count`` weekdays, skipping weekends."""
    if count <= 0:
        return start
    # Any seven consecutive days hold exactly five weekdays.
    full_weeks = (count - 1) // 5
    current = start + timedelta(days=7 * full_weeks)
    remaining = count - full_weeks * 5
    while remaining > 0:
        current += ONE_DAY
        if not is_weekend(current):
            remaining -= 1
    return current
