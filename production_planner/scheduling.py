"""Start and completion date propagation along a production plan.

A plan is a strict chain: every stage starts after its predecessor has
completed. The stage a propagation starts from is the anchor; its own start
date is taken as given (it was set by the user) and only its completion date
is recomputed. Every later stage is rebuilt from its predecessor.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from .business_calendar import HolidayCalendar
from .domain import ProductionStage

# Tolerance for sums of fractional durations such as 0.1 + 0.2.
_EPSILON = 1e-9


def completion_date(stage: ProductionStage, calendar: HolidayCalendar) -> Optional[date]:
    """Apply the single-stage completion rule, ``None`` when unscheduled."""

    if stage.start_date is None:
        return None
    duration = stage.effective_duration
    if duration <= 1:
        return stage.start_date
    whole_days = math.ceil(duration)
    if not stage.use_business_days:
        return stage.start_date + timedelta(days=whole_days)
    return calendar.add_business_days(stage.start_date, whole_days)


def chained_start_date(
    stage: ProductionStage, previous_completed: date, calendar: HolidayCalendar
) -> date:
    """First day ``stage`` may start once its predecessor completed."""

    if not stage.use_business_days:
        return previous_completed + timedelta(days=1)
    return calendar.next_business_day(previous_completed)


def _is_fractional(stage: ProductionStage) -> bool:
    return stage.use_business_days and stage.effective_duration < 1


def _day_used_at_anchor(stages: Sequence[ProductionStage], start_index: int) -> float:
    """Share of the anchor's start day already taken when chaining resumes.

    Counts the anchor plus the sub-day stages right before it that completed
    on the anchor's start day, so a partial recompute packs later stages the
    same way a full one does.
    """

    anchor = stages[start_index]
    if not _is_fractional(anchor):
        return 0.0
    day_used = anchor.effective_duration
    for stage in reversed(stages[:start_index]):
        if not _is_fractional(stage) or stage.completed_date != anchor.start_date:
            break
        day_used += stage.effective_duration
    return 0.0 if day_used >= 1 - _EPSILON else day_used


def propagate(
    stages: Sequence[ProductionStage],
    start_index: int,
    calendar: HolidayCalendar,
    *,
    accumulate_fractional_days: bool = False,
) -> List[ProductionStage]:
    """Recompute dates from ``start_index`` to the end of the plan.

    Stages before ``start_index`` are copied unchanged. When the anchor has no
    start date it keeps its dates and every later stage is cleared, as is any
    stage whose predecessor ended up without a completion date.

    With ``accumulate_fractional_days`` sub-day business-day stages share a
    working day: a stage that still fits into what is left of its
    predecessor's completion day starts and completes on that day instead of
    moving on to the next working day.
    """

    result = [replace(stage) for stage in stages]
    if start_index < 0 or start_index >= len(result):
        return result

    anchor = result[start_index]
    if anchor.start_date is None:
        for stage in result[start_index + 1 :]:
            stage.start_date = None
            stage.completed_date = None
        return result

    anchor.completed_date = completion_date(anchor, calendar)
    day_used = (
        _day_used_at_anchor(result, start_index) if accumulate_fractional_days else 0.0
    )

    for index in range(start_index + 1, len(result)):
        stage = result[index]
        previous_completed = result[index - 1].completed_date
        if previous_completed is None:
            stage.start_date = None
            stage.completed_date = None
            day_used = 0.0
            continue

        fractional = _is_fractional(stage)
        duration = stage.effective_duration
        if (
            accumulate_fractional_days
            and fractional
            and day_used > 0
            and day_used + duration <= 1 + _EPSILON
        ):
            stage.start_date = previous_completed
            stage.completed_date = previous_completed
            day_used += duration
            if day_used >= 1 - _EPSILON:
                day_used = 0.0
            continue

        stage.start_date = chained_start_date(stage, previous_completed, calendar)
        stage.completed_date = completion_date(stage, calendar)
        day_used = duration if fractional else 0.0
    return result


def recalculate_from_first_stage(
    stages: Sequence[ProductionStage],
    calendar: HolidayCalendar,
    *,
    accumulate_fractional_days: bool = False,
) -> List[ProductionStage]:
    return propagate(
        stages, 0, calendar, accumulate_fractional_days=accumulate_fractional_days
    )


def recalculate_from_stage(
    stages: Sequence[ProductionStage],
    index: int,
    calendar: HolidayCalendar,
    *,
    accumulate_fractional_days: bool = False,
) -> List[ProductionStage]:
    return propagate(
        stages, index, calendar, accumulate_fractional_days=accumulate_fractional_days
    )


__all__ = [
    "completion_date",
    "chained_start_date",
    "propagate",
    "recalculate_from_first_stage",
    "recalculate_from_stage",
]
