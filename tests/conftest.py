#!/usr/bin/env python3
"""
Pytest configuration for the recurrence engine tests.

Provides settings isolation and the rules used across several test modules.
"""

import os
import sys
import logging
import pytest
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recurrence.config import RecurrenceSettings, get_settings
from recurrence.rules import (
    Recurrence, Daily, Weekly, Monthly, Yearly, NthWeekday, Weekday
)

ENGINE_LOGGERS = ("recurrence", "observability")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test against default settings, whatever the shell exports."""
    for name in list(os.environ):
        if name.startswith("RECURRENCE_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_engine_loggers():
    """Undo handler and propagation changes made by configure_logging."""
    saved = {}
    for name in ENGINE_LOGGERS:
        engine_logger = logging.getLogger(name)
        saved[name] = (engine_logger.handlers[:], engine_logger.propagate, engine_logger.level)
    yield
    for name, (handlers, propagate, level) in saved.items():
        engine_logger = logging.getLogger(name)
        engine_logger.handlers[:] = handlers
        engine_logger.propagate = propagate
        engine_logger.setLevel(level)


@pytest.fixture
def default_settings():
    return RecurrenceSettings()


@pytest.fixture
def exclusive_settings():
    return RecurrenceSettings(window_end_inclusive=False)


@pytest.fixture
def rule_start():
    # Time of day is carried on purpose; rules strip it.
    return datetime(2016, 1, 1, 12, 30)


@pytest.fixture
def every_fourth_weekday(rule_start):
    return Recurrence(start_date=rule_start, pattern=Daily(only_weekdays=True), interval=4)


@pytest.fixture
def biweekly_mon_wed_fri(rule_start):
    days = {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}
    return Recurrence(start_date=rule_start, pattern=Weekly(days=days), interval=2)


@pytest.fixture
def fourth_thursday_every_other_month(rule_start):
    return Recurrence(
        start_date=rule_start,
        pattern=Monthly(on=NthWeekday(4, Weekday.THURSDAY)),
        interval=2,
        end_by_date=datetime(2016, 7, 1, 12, 30),
    )


@pytest.fixture
def third_thursday_of_june(rule_start):
    return Recurrence(
        start_date=rule_start,
        pattern=Yearly(month=6, on=NthWeekday(3, Weekday.THURSDAY)),
        interval=1,
    )
