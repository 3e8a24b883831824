"""Single-field edits on a production plan.

Every function here takes the current stage list and returns a new one; the
caller replaces its plan with the result in one assignment.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .business_calendar import HolidayCalendar
from .dates import parse_date
from .domain import ProductionStage, StageStatus, parse_duration
from .scheduling import recalculate_from_first_stage, recalculate_from_stage


class PlanEditError(ValueError):
    """Raised for edits that cannot be applied to a plan."""


class Recompute(str, Enum):
    """Which part of the plan an edit invalidated."""

    NONE = "none"
    FROM_STAGE = "from_stage"
    FULL = "full"


# Document spellings of the editable fields mapped to attribute names.
FIELD_ALIASES: Dict[str, str] = {
    "stageName": "stage_name",
    "status": "status",
    "startDate": "start_date",
    "completedDate": "completed_date",
    "durationDays": "duration_days",
    "useBusinessDays": "use_business_days",
    "responsibleId": "responsible_id",
    "assignedResourceId": "assigned_resource_id",
    "estimatedHours": "estimated_hours",
    "notes": "notes",
}
EDITABLE_FIELDS = frozenset(FIELD_ALIASES.values())

_TRUE_VALUES = {"1", "true", "yes", "on", "sim"}


def normalize_field(name: str) -> str:
    field_name = FIELD_ALIASES.get(name, name)
    if field_name not in EDITABLE_FIELDS:
        raise PlanEditError(f"Stage field {name!r} cannot be edited")
    return field_name


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


def _check_index(stages: Sequence[ProductionStage], index: int) -> None:
    if index < 0 or index >= len(stages):
        raise PlanEditError(
            f"Stage index {index} is out of range for a plan of {len(stages)} stages"
        )


def apply_stage_edit(
    stages: Sequence[ProductionStage],
    index: int,
    field_name: str,
    value: object,
    calendar: HolidayCalendar,
    *,
    today: Optional[date] = None,
    accumulate_fractional_days: bool = False,
) -> Tuple[List[ProductionStage], Recompute]:
    """Set one field of stage ``index`` and recompute what the change affects."""

    _check_index(stages, index)
    field_name = normalize_field(field_name)
    edited = [replace(stage) for stage in stages]
    stage = edited[index]

    if field_name == "duration_days":
        stage.duration_days = parse_duration(value)
        strategy = Recompute.FROM_STAGE
    elif field_name == "use_business_days":
        stage.use_business_days = _as_bool(value)
        strategy = Recompute.FULL
    elif field_name == "start_date":
        stage.start_date = parse_date(value).value
        if stage.start_date is None:
            stage.completed_date = None
        strategy = Recompute.FROM_STAGE
    elif field_name == "status":
        try:
            stage.status = StageStatus.parse(value)
        except ValueError as exc:
            raise PlanEditError(str(exc)) from exc
        if stage.status is StageStatus.COMPLETED and stage.completed_date is None:
            stage.completed_date = today or date.today()
        strategy = Recompute.NONE
    elif field_name == "completed_date":
        stage.completed_date = parse_date(value).value
        strategy = Recompute.NONE
    else:
        setattr(stage, field_name, value)
        strategy = Recompute.NONE

    if strategy is Recompute.FULL:
        edited = recalculate_from_first_stage(
            edited, calendar, accumulate_fractional_days=accumulate_fractional_days
        )
    elif strategy is Recompute.FROM_STAGE:
        edited = recalculate_from_stage(
            edited,
            index,
            calendar,
            accumulate_fractional_days=accumulate_fractional_days,
        )
    return edited, strategy


def add_stage(
    stages: Sequence[ProductionStage], stage_name: str = ""
) -> List[ProductionStage]:
    """Append an undated, zero-duration ``Pending`` stage."""

    return [replace(stage) for stage in stages] + [
        ProductionStage(stage_name=stage_name, duration_days=0.0)
    ]


def remove_stage(
    stages: Sequence[ProductionStage], index: int
) -> List[ProductionStage]:
    """Drop stage ``index``; later stages keep their (possibly stale) dates."""

    _check_index(stages, index)
    return [replace(stage) for position, stage in enumerate(stages) if position != index]


__all__ = [
    "PlanEditError",
    "Recompute",
    "FIELD_ALIASES",
    "EDITABLE_FIELDS",
    "normalize_field",
    "apply_stage_edit",
    "add_stage",
    "remove_stage",
]
