"""
Engine settings.

Behaviors that older revisions of the engine disagreed on are decided here
and can be switched through environment variables:

RECURRENCE_WINDOW_END_INCLUSIVE   true | false          (default true)
RECURRENCE_DAY_OVERFLOW           skip | clamp | rollover (default skip)
RECURRENCE_WEEKDAY_FAST_FORWARD   exact | legacy        (default exact)
RECURRENCE_LOG_LEVEL              logging level name    (default INFO)
RECURRENCE_LOG_JSON               true | false          (default true)
"""

import functools
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


class DayOverflow(str, Enum):
    """What a fixed day-of-month does in a month that is too short for it."""
    skip = "skip"          # the month has no occurrence
    clamp = "clamp"        # fall back to the last day of the month
    rollover = "rollover"  # spill into the following month (Feb 31 -> Mar 3)


class WeekdayFastForward(str, Enum):
    """How a weekdays-only daily rule jumps to the query window."""
    exact = "exact"
    legacy = "legacy"


class SettingsError(ValueError):
    """Raised when an environment variable holds an unusable value."""
    pass


@dataclass(frozen=True)
class RecurrenceSettings:
    window_end_inclusive: bool = True
    day_overflow: DayOverflow = DayOverflow.skip
    weekday_fast_forward: WeekdayFastForward = WeekdayFastForward.exact
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RecurrenceSettings":
        env = os.environ if environ is None else environ
        settings = cls(
            window_end_inclusive=_env_bool(env, "RECURRENCE_WINDOW_END_INCLUSIVE", True),
            day_overflow=_env_enum(env, "RECURRENCE_DAY_OVERFLOW", DayOverflow, DayOverflow.skip),
            weekday_fast_forward=_env_enum(
                env, "RECURRENCE_WEEKDAY_FAST_FORWARD", WeekdayFastForward, WeekdayFastForward.exact
            ),
            log_level=_env_log_level(env, "RECURRENCE_LOG_LEVEL", "INFO"),
            log_json=_env_bool(env, "RECURRENCE_LOG_JSON", True),
        )
        logger.debug(f"Loaded recurrence settings: {settings}")
        return settings


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise SettingsError(f"{name} must be a boolean, got {raw!r}")


def _env_enum(env: Mapping[str, str], name: str, enum_cls, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise SettingsError(f"{name} must be one of {choices}, got {raw!r}")


def _env_log_level(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise SettingsError(f"{name} is not a logging level: {raw!r}")
    return level


@functools.lru_cache(maxsize=1)
def get_settings() -> RecurrenceSettings:
    """Process-wide settings, read from the environment once."""
    return RecurrenceSettings.from_env()


def reload_settings() -> RecurrenceSettings:
    get_settings.cache_clear()
    return get_settings()
