"""
Rule dispatcher.

Normalizes a rule's start and end-by dates to whole days and routes the
occurrence query to the generator matching the rule's pattern. Also hosts
the scheduler-facing helpers built on top of the window query.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import List, Optional

from observability.logging import (
    clear_rule_context,
    engine_logger,
    generate_query_id,
    get_rule_context,
    log_function_call,
    set_rule_context,
)

from .calendar_math import as_naive, to_midnight
from .config import RecurrenceSettings, get_settings
from .generators import (
    daily_occurrences,
    monthly_occurrences,
    weekly_occurrences,
    yearly_occurrences,
)
from .rules import (
    Daily,
    DateLike,
    Monthly,
    Pattern,
    Recurrence,
    UnrecognizedPattern,
    Weekly,
    Yearly,
)

logger = logging.getLogger(__name__)

# Days in one period of each pattern, used to size look-ahead windows.
PERIOD_DAYS = {
    Pattern.DAILY: 1,
    Pattern.WEEKLY: 7,
    Pattern.MONTHLY: 31,
    Pattern.YEARLY: 366,
}
LOOKAHEAD_PERIODS = 60
# One full Gregorian cycle; every satisfiable rule repeats within it.
MAX_LOOKAHEAD_DAYS = 146097


@log_function_call(engine_logger)
def occurrences_between(rule: Recurrence, window_start: DateLike, window_end: DateLike,
                        settings: Optional[RecurrenceSettings] = None) -> List[datetime]:
    """Occurrences of ``rule`` within ``[window_start, window_end]``, ascending.

    The window is used as given (dates become midnight, aware datetimes lose
    their zone); only the rule's own dates are cut down to whole days.
    Whether ``window_end`` itself can match follows
    ``settings.window_end_inclusive``.
    """
    settings = settings or get_settings()
    previous_context = get_rule_context()
    set_rule_context(rule_id=rule.rule_id, query_id=generate_query_id())
    started = time.time()
    try:
        occurrences = _dispatch(rule, as_naive(window_start), as_naive(window_end), settings)
        pattern = rule.pattern.pattern
        engine_logger.expansion_completed(
            pattern=pattern.value if pattern else type(rule.pattern).__name__,
            interval=rule.interval,
            occurrences=len(occurrences),
            duration_ms=(time.time() - started) * 1000,
        )
        return occurrences
    finally:
        clear_rule_context()
        set_rule_context(**previous_context)


def _dispatch(rule: Recurrence, window_start: datetime, window_end: datetime,
              settings: RecurrenceSettings) -> List[datetime]:
    start = to_midnight(rule.start_date)
    end_by = to_midnight(rule.end_by_date) if rule.end_by_date is not None else None
    spec = rule.pattern

    if isinstance(spec, Daily):
        return daily_occurrences(start, rule.interval, spec.only_weekdays, end_by,
                                 window_start, window_end, settings)
    if isinstance(spec, Weekly):
        return weekly_occurrences(start, rule.interval, spec.ordered_days, end_by,
                                  window_start, window_end, settings)
    if isinstance(spec, Monthly):
        return monthly_occurrences(start, rule.interval, spec.on, end_by,
                                   window_start, window_end, settings)
    if isinstance(spec, Yearly):
        return yearly_occurrences(start, rule.interval, spec.month, spec.on, end_by,
                                  window_start, window_end, settings)
    if isinstance(spec, UnrecognizedPattern):
        engine_logger.unrecognized_pattern(spec.code)
        return []
    raise TypeError(f"Unsupported pattern: {spec!r}")


def is_occurrence_on(rule: Recurrence, day: DateLike,
                     settings: Optional[RecurrenceSettings] = None) -> bool:
    """True if ``rule`` has an occurrence on the calendar day of ``day``."""
    settings = settings or get_settings()
    target = to_midnight(day)
    window_end = target if settings.window_end_inclusive else target + timedelta(days=1)
    occurrences = occurrences_between(rule, target, window_end, settings)
    return len(occurrences) == 1 and occurrences[0] == target


def default_horizon_days(rule: Recurrence, periods: int = LOOKAHEAD_PERIODS) -> int:
    """Look-ahead span covering ``periods`` cadence steps of ``rule``."""
    pattern = rule.pattern.pattern
    if pattern is None:
        return 0
    return PERIOD_DAYS[pattern] * rule.interval * periods


def next_occurrence(rule: Recurrence, after: DateLike, inclusive: bool = False,
                    horizon_days: Optional[int] = None,
                    settings: Optional[RecurrenceSettings] = None) -> Optional[datetime]:
    """First occurrence after ``after`` (or at it when ``inclusive``).

    Returns None when no occurrence falls within the look-ahead horizon.
    """
    upcoming = upcoming_occurrences(rule, after, count=1, inclusive=inclusive,
                                    horizon_days=horizon_days, settings=settings)
    if not upcoming:
        logger.info(f"No upcoming occurrences for rule {rule.rule_id or rule}")
        return None
    return upcoming[0]


def upcoming_occurrences(rule: Recurrence, after: DateLike, count: int = 5,
                         inclusive: bool = False, horizon_days: Optional[int] = None,
                         settings: Optional[RecurrenceSettings] = None) -> List[datetime]:
    """Up to ``count`` occurrences following ``after``. Useful for previews.

    An explicit ``horizon_days`` bounds the search to one window. Otherwise
    the search widens window by window until ``count`` occurrences are
    found, the end-by date is passed or ``MAX_LOOKAHEAD_DAYS`` is reached,
    so sparse rules (Feb 29, 5th weekdays) still fill the preview.
    """
    if count < 1:
        raise ValueError(f"count must be positive: {count}")

    origin = as_naive(after)
    if horizon_days is not None:
        step, limit = horizon_days, horizon_days
    else:
        step = default_horizon_days(rule, max(LOOKAHEAD_PERIODS, 2 * count))
        limit = MAX_LOOKAHEAD_DAYS
    end_by = to_midnight(rule.end_by_date) if rule.end_by_date is not None else None

    found: List[datetime] = []
    window_start = origin
    while True:
        window_end = min(window_start + timedelta(days=step), origin + timedelta(days=limit))
        for occurrence in occurrences_between(rule, window_start, window_end, settings):
            if found:
                if occurrence <= found[-1]:
                    continue
            elif occurrence < origin or (occurrence == origin and not inclusive):
                continue
            found.append(occurrence)

        if len(found) >= count or step <= 0 or window_end >= origin + timedelta(days=limit):
            break
        if end_by is not None and window_end >= end_by:
            break
        logger.debug(f"Widening look-ahead past {window_end}: {len(found)} of {count} found")
        window_start = window_end
    return found[:count]
