"""Date parsing at the boundary between raw input and the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


@dataclass(frozen=True, slots=True)
class DateParseResult:
    """Outcome of parsing a raw date value.

    Exactly one of ``value`` and ``error`` is set, except for blank input which
    parses successfully to "no date" (both ``None``).
    """

    value: Optional[date] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_date(raw: object) -> DateParseResult:
    """Parse ISO (``YYYY-MM-DD``), ISO timestamps, or ``DD/MM/YYYY`` input."""

    if raw is None:
        return DateParseResult()
    if isinstance(raw, datetime):
        return DateParseResult(value=raw.date())
    if isinstance(raw, date):
        return DateParseResult(value=raw)
    text = str(raw).strip()
    if not text:
        return DateParseResult()
    for fmt in DATE_FORMATS:
        try:
            return DateParseResult(value=datetime.strptime(text, fmt).date())
        except ValueError:
            continue
    try:
        return DateParseResult(
            value=datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        )
    except ValueError:
        return DateParseResult(error=f"Invalid date {text!r}")


__all__ = ["DateParseResult", "parse_date", "DATE_FORMATS"]
