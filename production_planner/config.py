"""Environment-driven settings for the planner.

Values come from the process environment, with a `.env` file in the working
directory loaded first. `TestingConfig` pins an in-memory store.
"""

import os
from typing import Optional, Tuple

from dotenv import load_dotenv

from .business_calendar import (
    DEFAULT_WEEKEND_DAYS,
    NATIONAL_HOLIDAYS,
    HolidayCalendar,
    load_holidays,
)

load_dotenv()


def _parse_weekdays(value: Optional[str]) -> Tuple[int, ...]:
    if not value:
        return DEFAULT_WEEKEND_DAYS
    return tuple(int(token) for token in value.split(",") if token.strip())


def _parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Settings read from the environment (and an optional ``.env`` file)."""

    DATABASE_PATH = os.environ.get("PLANNER_DATABASE_PATH", "planner.sqlite3")
    HOLIDAYS_FILE = os.environ.get("HOLIDAYS_FILE")
    WEEKEND_DAYS = _parse_weekdays(os.environ.get("WEEKEND_DAYS"))
    ACCUMULATE_FRACTIONAL_DAYS = _parse_flag(
        os.environ.get("ACCUMULATE_FRACTIONAL_DAYS")
    )
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")
    LOAD_DEMO_DATA = _parse_flag(os.environ.get("LOAD_DEMO_DATA", "true"))


class TestingConfig(Config):
    """Configuration for the test suite: in-memory store, no demo data."""

    DATABASE_PATH = ":memory:"
    HOLIDAYS_FILE = None
    WEEKEND_DAYS = DEFAULT_WEEKEND_DAYS
    ACCUMULATE_FRACTIONAL_DAYS = False
    LOG_FILE = None
    LOAD_DEMO_DATA = False


def build_calendar(config: type = Config) -> HolidayCalendar:
    """Create the working-day calendar described by ``config``."""

    holidays = (
        load_holidays(config.HOLIDAYS_FILE) if config.HOLIDAYS_FILE else NATIONAL_HOLIDAYS
    )
    return HolidayCalendar(holidays, weekend_days=config.WEEKEND_DAYS)
