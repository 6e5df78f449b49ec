"""
Tests for the flat recurrence record schema.
"""

import pytest
from datetime import date, datetime
from pydantic import ValidationError

from recurrence.rules import (
    Daily,
    DayOfMonth,
    IncompleteRuleError,
    InvalidIntervalError,
    InvalidRuleError,
    Monthly,
    NthWeekday,
    Recurrence,
    UnrecognizedPattern,
    Weekday,
    Weekly,
    Yearly,
)
from recurrence.schemas import (
    ALL_DAYS_MASK,
    RecurrenceRecord,
    mask_from_weekdays,
    weekdays_from_mask,
)


class TestWeekdayMask:
    """Test the weekday bitmask encoding."""

    def test_decode(self):
        assert weekdays_from_mask(32 + 8 + 2) == {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}
        assert weekdays_from_mask(64 + 16 + 4 + 1) == {
            Weekday.SUNDAY, Weekday.TUESDAY, Weekday.THURSDAY, Weekday.SATURDAY
        }
        assert weekdays_from_mask(ALL_DAYS_MASK) == frozenset(Weekday)
        assert weekdays_from_mask(0) == frozenset()

    def test_encode(self):
        assert mask_from_weekdays([Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY]) == 42
        assert mask_from_weekdays(Weekday) == ALL_DAYS_MASK
        assert mask_from_weekdays([0]) == 64


class TestRecordToRule:
    """Test building typed rules from records."""

    def test_weekly_record(self):
        record = RecurrenceRecord(
            start_date=datetime(2016, 1, 1, 12, 30),
            recurrence_pattern_code="W",
            recur_every=2,
            weekly_days_included=42,
        )
        rule = record.to_recurrence()

        assert rule.pattern == Weekly(days={Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY})
        assert rule.interval == 2
        occurrences = rule.occurrences_between(datetime(2016, 1, 1), datetime(2016, 1, 31))
        assert [occ.day for occ in occurrences] == [1, 11, 13, 15, 25, 27, 29]

    def test_weekly_record_defaults_to_every_day(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="W")
        assert record.to_recurrence().pattern == Weekly()

    def test_daily_record(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="D",
                                  recur_every=4, daily_is_only_weekday=True)
        rule = record.to_recurrence()

        assert rule.pattern == Daily(only_weekdays=True)
        assert rule.is_occurrence_on(date(2016, 1, 7))

    def test_monthly_record_with_end_by(self):
        record = RecurrenceRecord.model_validate({
            "start_date": "2016-01-01",
            "recurrence_pattern_code": "M",
            "recur_every": 2,
            "monthly_week_of_month": 4,
            "monthly_day_of_week": 4,
            "end_by_date": "2016-07-01",
        })
        rule = record.to_recurrence()

        assert rule.pattern == Monthly(on=NthWeekday(4, Weekday.THURSDAY))
        occurrences = rule.occurrences_between(datetime(2016, 1, 1), datetime(2017, 1, 1))
        assert occurrences == [datetime(2016, 1, 28), datetime(2016, 3, 24), datetime(2016, 5, 26)]

    def test_day_of_month_wins_over_weekday_pair(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="M",
                                  monthly_day=15, monthly_week_of_month=2, monthly_day_of_week=1)
        assert record.to_recurrence().pattern == Monthly(on=DayOfMonth(15))

    def test_yearly_record(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="Y",
                                  yearly_month=6, monthly_week_of_month=3, monthly_day_of_week=4)
        rule = record.to_recurrence()

        assert rule.pattern == Yearly(month=6, on=NthWeekday(3, Weekday.THURSDAY))
        assert rule.occurrences_between(datetime(2016, 2, 1), datetime(2018, 1, 1)) == [
            datetime(2016, 6, 16), datetime(2017, 6, 15)
        ]

    def test_unknown_code(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="B")
        rule = record.to_recurrence()

        assert rule.pattern == UnrecognizedPattern("B")
        assert rule.occurrences_between(datetime(2016, 1, 1), datetime(2017, 1, 1)) == []

    @pytest.mark.parametrize("code", ["d", "w", "DW", "XX", "Daily"])
    def test_codes_matched_exactly(self, code):
        """Lowercase and multi-letter codes are unknown patterns, not errors."""
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code=code, monthly_day=1)
        rule = record.to_recurrence()

        assert record.recurrence_pattern_code == code
        assert rule.pattern == UnrecognizedPattern(code)
        assert rule.occurrences_between(datetime(2016, 1, 1), datetime(2017, 1, 1)) == []

    def test_rule_id_carried(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="D", rule_id="standup")
        assert record.to_recurrence().rule_id == "standup"


class TestRecordErrors:
    """Malformed records surface as validation or rule errors."""

    def test_monthly_without_anchor(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="M")
        with pytest.raises(IncompleteRuleError):
            record.to_recurrence()

    def test_weekday_without_week(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="M",
                                  monthly_day_of_week=4)
        with pytest.raises(IncompleteRuleError):
            record.to_recurrence()

    def test_yearly_without_month(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="Y", monthly_day=1)
        with pytest.raises(IncompleteRuleError):
            record.to_recurrence()

    def test_zero_interval(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="D", recur_every=0)
        with pytest.raises(InvalidIntervalError):
            record.to_recurrence()

    def test_empty_weekday_mask(self):
        record = RecurrenceRecord(start_date=date(2016, 1, 1), recurrence_pattern_code="W",
                                  weekly_days_included=0)
        with pytest.raises(InvalidRuleError):
            record.to_recurrence()

    @pytest.mark.parametrize("field,value", [
        ("yearly_month", 13),
        ("monthly_week_of_month", 6),
        ("monthly_day_of_week", 7),
        ("monthly_day", 32),
        ("weekly_days_included", 128),
        ("recurrence_pattern_code", ""),
    ])
    def test_out_of_range_fields(self, field, value):
        data = {"start_date": date(2016, 1, 1), "recurrence_pattern_code": "M", field: value}
        with pytest.raises(ValidationError):
            RecurrenceRecord(**data)


class TestRuleToRecord:
    """Test exporting typed rules back to records."""

    def test_monthly_nth_weekday(self):
        rule = Recurrence(start_date=date(2016, 1, 1), pattern=Monthly(on=NthWeekday(4, Weekday.THURSDAY)),
                          interval=2, end_by_date=date(2016, 7, 1))
        record = RecurrenceRecord.from_recurrence(rule)

        assert record.recurrence_pattern_code == "M"
        assert record.recur_every == 2
        assert record.monthly_week_of_month == 4
        assert record.monthly_day_of_week == 4
        assert record.monthly_day is None
        assert record.to_recurrence() == rule

    def test_yearly_day_of_month(self):
        rule = Recurrence(start_date=date(2010, 1, 1), pattern=Yearly(month=2, on=DayOfMonth(14)))
        record = RecurrenceRecord.from_recurrence(rule)

        assert record.recurrence_pattern_code == "Y"
        assert record.yearly_month == 2
        assert record.monthly_day == 14
        assert record.to_recurrence() == rule

    def test_weekly_mask(self):
        rule = Recurrence(start_date=date(2016, 1, 1),
                          pattern=Weekly(days={Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}))
        assert RecurrenceRecord.from_recurrence(rule).weekly_days_included == 42

    def test_weekly_all_days_left_unset(self):
        rule = Recurrence(start_date=date(2016, 1, 1), pattern=Weekly())
        assert RecurrenceRecord.from_recurrence(rule).weekly_days_included is None

    def test_daily(self):
        rule = Recurrence(start_date=date(2016, 1, 1), pattern=Daily(only_weekdays=True), interval=4)
        record = RecurrenceRecord.from_recurrence(rule)

        assert record.recurrence_pattern_code == "D"
        assert record.daily_is_only_weekday is True

    def test_unrecognized(self):
        rule = Recurrence(start_date=date(2016, 1, 1), pattern=UnrecognizedPattern("B"))
        assert RecurrenceRecord.from_recurrence(rule).recurrence_pattern_code == "B"

    def test_unrecognized_multi_letter_round_trip(self):
        rule = Recurrence(start_date=date(2016, 1, 1), pattern=UnrecognizedPattern("XX"))
        record = RecurrenceRecord.from_recurrence(rule)

        assert record.recurrence_pattern_code == "XX"
        assert record.to_recurrence() == rule
