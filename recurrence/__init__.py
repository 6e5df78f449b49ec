"""
Calendar recurrence engine.

This package expands recurring event rules into concrete calendar dates:
- Rule model with construction-time validation
- Daily, weekly, monthly and yearly occurrence generators
- Window queries, membership checks and look-ahead helpers
- Flat record schema for stored rules
"""

from .rules import (
    Recurrence,
    Pattern,
    Weekday,
    Daily,
    Weekly,
    Monthly,
    Yearly,
    UnrecognizedPattern,
    DayOfMonth,
    NthWeekday,
    RecurrenceError,
    InvalidIntervalError,
    IncompleteRuleError,
    InvalidRuleError,
)
from .expander import occurrences_between, is_occurrence_on, next_occurrence, upcoming_occurrences
from .config import RecurrenceSettings, DayOverflow, WeekdayFastForward, get_settings

__version__ = "1.0.0"

__all__ = [
    'Recurrence',
    'Pattern',
    'Weekday',
    'Daily',
    'Weekly',
    'Monthly',
    'Yearly',
    'UnrecognizedPattern',
    'DayOfMonth',
    'NthWeekday',
    'RecurrenceError',
    'InvalidIntervalError',
    'IncompleteRuleError',
    'InvalidRuleError',
    'occurrences_between',
    'is_occurrence_on',
    'next_occurrence',
    'upcoming_occurrences',
    'RecurrenceSettings',
    'DayOverflow',
    'WeekdayFastForward',
    'get_settings',
]
