"""
Pydantic schema for the flat recurrence record.

Storage layers and older API clients describe a rule as one flat record:
a single-letter pattern code, nullable pattern-specific columns and the
included weekdays packed into a bitmask. This module validates such records
and translates them to and from the typed ``Recurrence`` rule.
"""

from datetime import date, datetime
from typing import FrozenSet, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .rules import (
    ALL_WEEKDAYS,
    Daily,
    DayOfMonth,
    IncompleteRuleError,
    Monthly,
    NthWeekday,
    Pattern,
    Recurrence,
    UnrecognizedPattern,
    Weekday,
    Weekly,
    Yearly,
)

# Sunday is the high bit, Saturday the low bit.
WEEKDAY_BITS = {
    Weekday.SUNDAY: 64,
    Weekday.MONDAY: 32,
    Weekday.TUESDAY: 16,
    Weekday.WEDNESDAY: 8,
    Weekday.THURSDAY: 4,
    Weekday.FRIDAY: 2,
    Weekday.SATURDAY: 1,
}
ALL_DAYS_MASK = 127


def weekdays_from_mask(mask: int) -> FrozenSet[Weekday]:
    """Decode a weekday bitmask, e.g. 42 -> {Monday, Wednesday, Friday}."""
    return frozenset(day for day, bit in WEEKDAY_BITS.items() if mask & bit)


def mask_from_weekdays(days: Iterable[Weekday]) -> int:
    mask = 0
    for day in days:
        mask |= WEEKDAY_BITS[Weekday(day)]
    return mask


class RecurrenceRecord(BaseModel):
    """Flat recurrence record as stored alongside calendar events."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "start_date": "2016-01-01",
                "recurrence_pattern_code": "M",
                "recur_every": 2,
                "monthly_week_of_month": 4,
                "monthly_day_of_week": 4,
                "end_by_date": "2016-07-01",
            }
        },
    )

    start_date: Union[datetime, date] = Field(..., description="First day of the recurrence; time of day is ignored")
    recurrence_pattern_code: str = Field(..., min_length=1,
                                         description="D daily, W weekly, M monthly or Y yearly; other codes match no dates")
    recur_every: int = Field(default=1, description="Days, weeks, months or years between occurrences")
    yearly_month: Optional[int] = Field(None, ge=1, le=12, description="Month of the year (yearly rules)")
    monthly_week_of_month: Optional[int] = Field(None, ge=1, le=5, description="Week of the month, paired with monthly_day_of_week")
    monthly_day_of_week: Optional[int] = Field(None, ge=0, le=6, description="Day of week, 0=Sunday")
    monthly_day: Optional[int] = Field(None, ge=1, le=31, description="Day of the month (monthly and yearly rules)")
    weekly_days_included: Optional[int] = Field(None, ge=0, le=ALL_DAYS_MASK, description="Weekday bitmask, Sunday=64 ... Saturday=1")
    daily_is_only_weekday: Optional[bool] = Field(None, description="Daily rules skip weekends")
    end_by_date: Optional[Union[datetime, date]] = Field(None, description="No occurrence on or after this day")
    rule_id: Optional[str] = Field(None, max_length=100)

    def month_anchor(self):
        """Day-of-month wins when both anchor styles are present."""
        if self.monthly_day is not None:
            return DayOfMonth(self.monthly_day)
        if self.monthly_day_of_week is not None and self.monthly_week_of_month is not None:
            return NthWeekday(self.monthly_week_of_month, Weekday(self.monthly_day_of_week))
        raise IncompleteRuleError(
            "Monthly and yearly records need monthly_day or "
            "monthly_week_of_month with monthly_day_of_week"
        )

    def pattern_spec(self):
        code = self.recurrence_pattern_code
        if code == Pattern.DAILY.value:
            return Daily(only_weekdays=bool(self.daily_is_only_weekday))
        if code == Pattern.WEEKLY.value:
            mask = ALL_DAYS_MASK if self.weekly_days_included is None else self.weekly_days_included
            return Weekly(days=weekdays_from_mask(mask))
        if code == Pattern.MONTHLY.value:
            return Monthly(on=self.month_anchor())
        if code == Pattern.YEARLY.value:
            return Yearly(month=self.yearly_month, on=self.month_anchor())
        return UnrecognizedPattern(code)

    def to_recurrence(self) -> Recurrence:
        """Build the typed rule; raises RecurrenceError subclasses on bad records."""
        return Recurrence(
            start_date=self.start_date,
            pattern=self.pattern_spec(),
            interval=self.recur_every,
            end_by_date=self.end_by_date,
            rule_id=self.rule_id,
        )

    @classmethod
    def from_recurrence(cls, rule: Recurrence) -> "RecurrenceRecord":
        spec = rule.pattern
        fields = {
            "start_date": rule.start_date,
            "recur_every": rule.interval,
            "end_by_date": rule.end_by_date,
            "rule_id": rule.rule_id,
        }
        if isinstance(spec, UnrecognizedPattern):
            fields["recurrence_pattern_code"] = spec.code
            return cls(**fields)

        fields["recurrence_pattern_code"] = spec.pattern.value
        if isinstance(spec, Daily):
            fields["daily_is_only_weekday"] = spec.only_weekdays
        elif isinstance(spec, Weekly):
            if spec.days != ALL_WEEKDAYS:
                fields["weekly_days_included"] = mask_from_weekdays(spec.days)
        else:
            if isinstance(spec, Yearly):
                fields["yearly_month"] = spec.month
            if isinstance(spec.on, DayOfMonth):
                fields["monthly_day"] = spec.on.day
            else:
                fields["monthly_week_of_month"] = spec.on.week
                fields["monthly_day_of_week"] = int(spec.on.weekday)
        return cls(**fields)
