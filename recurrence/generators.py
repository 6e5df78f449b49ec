"""
Occurrence generators for the four recurrence patterns.

Each generator takes an already normalized rule start, fast-forwards to the
first on-cadence period at or after the window start and then walks forward
period by period until the window end or the end-by date is passed.
Rule occurrences come back at midnight, since the dispatcher hands every
generator a start already cut down to its calendar day.
"""

import calendar
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .calendar_math import (
    add_weekdays,
    count_weekdays,
    elapsed_days,
    elapsed_months,
    elapsed_weeks,
    elapsed_years,
    is_weekend,
    month_start,
    start_adder,
    sunday_weekday,
    week_start,
)
from .config import DayOverflow, RecurrenceSettings, WeekdayFastForward
from .rules import DayOfMonth, MonthAnchor, NthWeekday, Weekday

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = RecurrenceSettings()


def _within_end(value: datetime, window_end: datetime, inclusive: bool) -> bool:
    if inclusive:
        return value <= window_end
    return value < window_end


def _before_end_by(value: datetime, end_by: Optional[datetime]) -> bool:
    return end_by is None or value < end_by


# Daily

def daily_start(start: datetime, interval: int, window_start: datetime) -> datetime:
    """First every-N-days date on or after ``window_start``."""
    days = elapsed_days(start, window_start)
    return start + timedelta(days=start_adder(days, interval) + days)


def weekday_start(start: datetime, interval: int, window_start: datetime,
                  mode: WeekdayFastForward = WeekdayFastForward.exact) -> datetime:
    """First every-N-weekdays date on or after ``window_start``."""
    days = elapsed_days(start, window_start)
    weekdays = count_weekdays(days, start)

    if mode == WeekdayFastForward.legacy:
        # Weekday adder applied as calendar days, then off the weekend.
        landing = start + timedelta(days=start_adder(weekdays, interval) + days)
        if is_weekend(landing):
            landing += timedelta(days=2)
        return landing

    landing = start + timedelta(days=days)
    position = weekdays + (1 if is_weekend(landing) else 0)
    return add_weekdays(position + start_adder(position, interval), start)


def daily_occurrences(start: datetime, interval: int, only_weekdays: bool,
                      end_by: Optional[datetime], window_start: datetime,
                      window_end: datetime,
                      settings: RecurrenceSettings = DEFAULT_SETTINGS) -> List[datetime]:
    occurrences = []
    current = start
    if current < window_start:
        if only_weekdays:
            current = weekday_start(start, interval, window_start, settings.weekday_fast_forward)
        else:
            current = daily_start(start, interval, window_start)
        logger.debug(f"Daily rule fast-forwarded from {start} to {current}")

    while _within_end(current, window_end, settings.window_end_inclusive) and _before_end_by(current, end_by):
        if not (only_weekdays and is_weekend(current)):
            occurrences.append(current)
        if only_weekdays:
            current = add_weekdays(interval, current)
        else:
            current = current + timedelta(days=interval)
    return occurrences


# Weekly

def weekly_start(start: datetime, interval: int, window_start: datetime) -> datetime:
    """Opening Sunday of the first on-cadence week reaching ``window_start``."""
    first_week = week_start(start)
    weeks = elapsed_weeks(first_week, window_start)
    return first_week + timedelta(days=7 * (start_adder(weeks, interval) + weeks))


def included_days(days: Iterable[Weekday], week_anchor: datetime, window_start: datetime,
                  window_end: datetime, not_before: Optional[datetime] = None,
                  end_by: Optional[datetime] = None, inclusive: bool = True) -> List[datetime]:
    """Dates of ``days`` in the week opened by ``week_anchor`` that fall in the window.

    ``days`` must be in Sunday to Saturday order so the scan can stop at the
    first date past the window end.
    """
    dates = []
    for day in days:
        candidate = week_anchor + timedelta(days=int(day))
        if not _within_end(candidate, window_end, inclusive) or not _before_end_by(candidate, end_by):
            break
        if candidate < window_start:
            continue
        if not_before is not None and candidate < not_before:
            continue
        dates.append(candidate)
    return dates


def weekly_occurrences(start: datetime, interval: int, days: Iterable[Weekday],
                       end_by: Optional[datetime], window_start: datetime,
                       window_end: datetime,
                       settings: RecurrenceSettings = DEFAULT_SETTINGS) -> List[datetime]:
    ordered = sorted(days)
    occurrences = []
    if start < window_start:
        current = weekly_start(start, interval, window_start)
        logger.debug(f"Weekly rule fast-forwarded from {start} to week of {current}")
    else:
        current = week_start(start)

    inclusive = settings.window_end_inclusive
    while _within_end(current, window_end, inclusive) and _before_end_by(current, end_by):
        occurrences.extend(
            included_days(ordered, current, window_start, window_end,
                          not_before=start, end_by=end_by, inclusive=inclusive)
        )
        current = current + timedelta(days=7 * interval)
    return occurrences


# Monthly and yearly

def month_occurrence(anchor: datetime, on: MonthAnchor,
                     overflow: DayOverflow = DayOverflow.skip) -> Optional[datetime]:
    """The single occurrence for the month of ``anchor``, or None.

    ``anchor`` is expected on the first day of its month.
    """
    if isinstance(on, DayOfMonth):
        last_day = calendar.monthrange(anchor.year, anchor.month)[1]
        if on.day <= last_day:
            return anchor.replace(day=on.day)
        if overflow == DayOverflow.clamp:
            return anchor.replace(day=last_day)
        if overflow == DayOverflow.rollover:
            return anchor.replace(day=1) + timedelta(days=on.day - 1)
        return None

    if isinstance(on, NthWeekday):
        anchor_weekday = sunday_weekday(anchor)
        week_adder = on.week
        if on.weekday >= anchor_weekday:
            # first such weekday falls in the anchor's own week
            week_adder -= 1
        occurrence = anchor + timedelta(days=7 * week_adder + int(on.weekday) - anchor_weekday)
        if (occurrence.year, occurrence.month) != (anchor.year, anchor.month):
            return None
        return occurrence

    raise TypeError(f"Unsupported month anchor: {on!r}")


def _period_occurrences(current: datetime, step: relativedelta, start: datetime,
                        on: MonthAnchor, end_by: Optional[datetime],
                        window_start: datetime, window_end: datetime,
                        settings: RecurrenceSettings) -> List[datetime]:
    inclusive = settings.window_end_inclusive
    occurrences = []
    while _within_end(current, window_end, inclusive) and _before_end_by(current, end_by):
        occurrence = month_occurrence(current, on, settings.day_overflow)
        if (occurrence is not None
                and window_start <= occurrence
                and _within_end(occurrence, window_end, inclusive)
                and occurrence >= start
                and _before_end_by(occurrence, end_by)):
            occurrences.append(occurrence)
        current = current + step
    return occurrences


def monthly_start(start: datetime, interval: int, window_start: datetime) -> datetime:
    """First day of the first on-cadence month reaching ``window_start``."""
    first_month = month_start(start)
    months = elapsed_months(first_month, window_start)
    return first_month + relativedelta(months=start_adder(months, interval) + months)


def monthly_occurrences(start: datetime, interval: int, on: MonthAnchor,
                        end_by: Optional[datetime], window_start: datetime,
                        window_end: datetime,
                        settings: RecurrenceSettings = DEFAULT_SETTINGS) -> List[datetime]:
    if start < window_start:
        current = monthly_start(start, interval, window_start)
        logger.debug(f"Monthly rule fast-forwarded from {start} to {current}")
    else:
        current = month_start(start)
    return _period_occurrences(current, relativedelta(months=interval), start, on,
                               end_by, window_start, window_end, settings)


def yearly_start(start: datetime, month: int, interval: int, window_start: datetime) -> datetime:
    """First day of ``month`` in the first on-cadence year reaching ``window_start``."""
    first_year = start.replace(month=month, day=1)
    years = max(elapsed_years(first_year, window_start), 0)
    return first_year + relativedelta(years=start_adder(years, interval) + years)


def yearly_occurrences(start: datetime, interval: int, month: int, on: MonthAnchor,
                       end_by: Optional[datetime], window_start: datetime,
                       window_end: datetime,
                       settings: RecurrenceSettings = DEFAULT_SETTINGS) -> List[datetime]:
    if start < window_start:
        current = yearly_start(start, month, interval, window_start)
        logger.debug(f"Yearly rule fast-forwarded from {start} to {current}")
    else:
        current = start.replace(month=month, day=1)
    return _period_occurrences(current, relativedelta(years=interval), start, on,
                               end_by, window_start, window_end, settings)
