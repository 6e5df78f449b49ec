"""
Recurrence rule data model.

A rule is an immutable value describing a repeating calendar pattern:
- the start date and an optional end-by date (calendar days only)
- the interval (every N days, weeks, months or years)
- a pattern variant carrying exactly the fields that pattern needs

Rules are validated when they are constructed; the occurrence generators
never see an incomplete or out-of-range rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import ClassVar, FrozenSet, List, Optional, Union


class RecurrenceError(Exception):
    """Base exception for recurrence rule errors."""
    pass


class InvalidIntervalError(RecurrenceError):
    """Raised when a rule interval is not a positive integer."""
    pass


class IncompleteRuleError(RecurrenceError):
    """Raised when a rule is missing fields its pattern requires."""
    pass


class InvalidRuleError(RecurrenceError):
    """Raised when a rule field is outside its allowed range."""
    pass


class Pattern(str, Enum):
    """Recurrence patterns, valued by their legacy single-letter codes."""
    DAILY = "D"
    WEEKLY = "W"
    MONTHLY = "M"
    YEARLY = "Y"


class Weekday(IntEnum):
    """Days of the week numbered from Sunday, the first day of a rule week."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


ALL_WEEKDAYS: FrozenSet[Weekday] = frozenset(Weekday)


@dataclass(frozen=True)
class DayOfMonth:
    """Fixed day of the month, e.g. the 15th."""
    day: int

    def __post_init__(self):
        if not isinstance(self.day, int) or not 1 <= self.day <= 31:
            raise InvalidRuleError(f"Day of month must be between 1 and 31: {self.day!r}")


@dataclass(frozen=True)
class NthWeekday:
    """Nth weekday of the month, e.g. the 4th Thursday."""
    week: int
    weekday: Weekday

    def __post_init__(self):
        if not isinstance(self.week, int) or not 1 <= self.week <= 5:
            raise InvalidRuleError(f"Week of month must be between 1 and 5: {self.week!r}")
        try:
            object.__setattr__(self, "weekday", Weekday(self.weekday))
        except ValueError:
            raise InvalidRuleError(f"Day of week must be between 0 and 6: {self.weekday!r}")


MonthAnchor = Union[DayOfMonth, NthWeekday]


def _check_month_anchor(on: Optional[MonthAnchor], pattern: Pattern) -> None:
    if on is None:
        raise IncompleteRuleError(
            f"{pattern.name.lower()} rule needs a day of month or an nth weekday"
        )
    if not isinstance(on, (DayOfMonth, NthWeekday)):
        raise InvalidRuleError(f"Unsupported month anchor: {on!r}")


@dataclass(frozen=True)
class Daily:
    only_weekdays: bool = False

    pattern: ClassVar[Pattern] = Pattern.DAILY


@dataclass(frozen=True)
class Weekly:
    days: FrozenSet[Weekday] = ALL_WEEKDAYS

    pattern: ClassVar[Pattern] = Pattern.WEEKLY

    def __post_init__(self):
        if self.days is None:
            object.__setattr__(self, "days", ALL_WEEKDAYS)
            return
        try:
            days = frozenset(Weekday(d) for d in self.days)
        except ValueError:
            raise InvalidRuleError(f"Invalid weekday in weekly rule: {set(self.days)!r}")
        if not days:
            raise InvalidRuleError("Weekly rule needs at least one weekday")
        object.__setattr__(self, "days", days)

    @property
    def ordered_days(self) -> List[Weekday]:
        """Included weekdays in canonical Sunday to Saturday order."""
        return sorted(self.days)


@dataclass(frozen=True)
class Monthly:
    on: MonthAnchor = None

    pattern: ClassVar[Pattern] = Pattern.MONTHLY

    def __post_init__(self):
        _check_month_anchor(self.on, self.pattern)


@dataclass(frozen=True)
class Yearly:
    month: int = None
    on: MonthAnchor = None

    pattern: ClassVar[Pattern] = Pattern.YEARLY

    def __post_init__(self):
        if self.month is None:
            raise IncompleteRuleError("yearly rule needs a month")
        if not isinstance(self.month, int) or not 1 <= self.month <= 12:
            raise InvalidRuleError(f"Month must be between 1 and 12: {self.month!r}")
        _check_month_anchor(self.on, self.pattern)


@dataclass(frozen=True)
class UnrecognizedPattern:
    """A pattern code this engine does not know; it matches no dates."""
    code: str

    pattern: ClassVar[Optional[Pattern]] = None


PatternSpec = Union[Daily, Weekly, Monthly, Yearly, UnrecognizedPattern]

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class Recurrence:
    """A recurring event definition.

    Time of day and time zone on ``start_date`` and ``end_by_date`` are
    ignored; only their calendar days take part in the computation.
    """

    start_date: DateLike
    pattern: PatternSpec
    interval: int = 1
    end_by_date: Optional[DateLike] = None
    rule_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise InvalidIntervalError(f"Interval must be an integer: {self.interval!r}")
        if self.interval < 1:
            raise InvalidIntervalError(f"Interval must be positive: {self.interval}")
        if self.start_date is None:
            raise IncompleteRuleError("Rule needs a start date")
        if not isinstance(self.start_date, date):
            raise InvalidRuleError(f"Start date must be a date: {self.start_date!r}")
        if self.end_by_date is not None and not isinstance(self.end_by_date, date):
            raise InvalidRuleError(f"End-by date must be a date: {self.end_by_date!r}")
        if self.pattern is None:
            raise IncompleteRuleError("Rule needs a pattern")
        if not isinstance(self.pattern, (Daily, Weekly, Monthly, Yearly, UnrecognizedPattern)):
            raise InvalidRuleError(f"Unsupported pattern: {self.pattern!r}")

    def occurrences_between(self, window_start: DateLike, window_end: DateLike,
                            settings=None) -> List[datetime]:
        from .expander import occurrences_between
        return occurrences_between(self, window_start, window_end, settings)

    def is_occurrence_on(self, day: DateLike, settings=None) -> bool:
        from .expander import is_occurrence_on
        return is_occurrence_on(self, day, settings)

    def next_occurrence(self, after: DateLike, inclusive: bool = False,
                        settings=None) -> Optional[datetime]:
        from .expander import next_occurrence
        return next_occurrence(self, after, inclusive=inclusive, settings=settings)

    def upcoming_occurrences(self, after: DateLike, count: int = 5,
                             settings=None) -> List[datetime]:
        from .expander import upcoming_occurrences
        return upcoming_occurrences(self, after, count=count, settings=settings)
