"""Working-day calendar used by the stage scheduler."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import FrozenSet, Iterable, List, Sequence, Union

from .dates import parse_date

DateLike = Union[date, datetime]

DEFAULT_WEEKEND_DAYS = (5, 6)

# Brazilian national holidays (including Carnival, Good Friday and Corpus
# Christi, which the shop does not work). Years outside this table fall back
# to weekend-only classification.
NATIONAL_HOLIDAYS = (
    date(2024, 1, 1),
    date(2024, 2, 12),
    date(2024, 2, 13),
    date(2024, 3, 29),
    date(2024, 4, 21),
    date(2024, 5, 1),
    date(2024, 5, 30),
    date(2024, 9, 7),
    date(2024, 10, 12),
    date(2024, 11, 2),
    date(2024, 11, 15),
    date(2024, 11, 20),
    date(2024, 12, 25),
    date(2025, 1, 1),
    date(2025, 3, 3),
    date(2025, 3, 4),
    date(2025, 4, 18),
    date(2025, 4, 21),
    date(2025, 5, 1),
    date(2025, 6, 19),
    date(2025, 9, 7),
    date(2025, 10, 12),
    date(2025, 11, 2),
    date(2025, 11, 15),
    date(2025, 11, 20),
    date(2025, 12, 25),
    date(2026, 1, 1),
    date(2026, 2, 16),
    date(2026, 2, 17),
    date(2026, 4, 3),
    date(2026, 4, 21),
    date(2026, 5, 1),
    date(2026, 6, 4),
    date(2026, 9, 7),
    date(2026, 10, 12),
    date(2026, 11, 2),
    date(2026, 11, 15),
    date(2026, 11, 20),
    date(2026, 12, 25),
)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


class HolidayCalendar:
    """Classifies days as working or non-working and walks between them."""

    def __init__(
        self,
        holidays: Iterable[DateLike] = NATIONAL_HOLIDAYS,
        *,
        weekend_days: Sequence[int] = DEFAULT_WEEKEND_DAYS,
    ) -> None:
        for weekday in weekend_days:
            if weekday < 0 or weekday > 6:
                raise ValueError("Weekday indices must be in range 0..6")
        if len(set(weekend_days)) == 7:
            raise ValueError("A calendar needs at least one working weekday")
        self._holidays = {_as_date(day) for day in holidays}
        self._weekend_days: FrozenSet[int] = frozenset(weekend_days)

    @property
    def holidays(self) -> List[date]:
        return sorted(self._holidays)

    @property
    def weekend_days(self) -> FrozenSet[int]:
        return self._weekend_days

    def add_holiday(self, day: DateLike) -> None:
        self._holidays.add(_as_date(day))

    def is_holiday(self, day: DateLike) -> bool:
        return _as_date(day) in self._holidays

    def is_weekend(self, day: DateLike) -> bool:
        return _as_date(day).weekday() in self._weekend_days

    def is_business_day(self, day: DateLike) -> bool:
        return not self.is_weekend(day) and not self.is_holiday(day)

    def next_business_day(self, day: DateLike) -> date:
        """Return the first business day strictly after ``day``."""

        candidate = _as_date(day) + timedelta(days=1)
        while not self.is_business_day(candidate):
            candidate += timedelta(days=1)
        return candidate

    def previous_business_day(self, day: DateLike) -> date:
        """Return the last business day strictly before ``day``."""

        candidate = _as_date(day) - timedelta(days=1)
        while not self.is_business_day(candidate):
            candidate -= timedelta(days=1)
        return candidate

    def add_business_days(self, start: DateLike, days: int) -> date:
        """Walk ``days`` business days away from ``start``.

        Only landings on business days are counted, so the result of a
        non-zero walk is always a business day. ``start`` itself is returned
        unchanged for ``days == 0`` even when it is not a working day.
        """

        current = _as_date(start)
        if days == 0:
            return current
        step = timedelta(days=1 if days > 0 else -1)
        remaining = abs(days)
        while remaining > 0:
            current += step
            if self.is_business_day(current):
                remaining -= 1
        return current


def load_holidays(path: Union[str, Path]) -> List[date]:
    """Read one ISO date per line; blank lines and ``#`` comments are skipped."""

    holidays: List[date] = []
    for line_number, line in enumerate(
        Path(path).read_text(encoding="utf-8").splitlines(), start=1
    ):
        text = line.split("#", 1)[0].strip()
        if not text:
            continue
        result = parse_date(text)
        if result.value is None:
            raise ValueError(f"{path}:{line_number}: {result.error}")
        holidays.append(result.value)
    return holidays


__all__ = [
    "HolidayCalendar",
    "NATIONAL_HOLIDAYS",
    "DEFAULT_WEEKEND_DAYS",
    "load_holidays",
]
