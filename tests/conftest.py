from datetime import date
from typing import Optional

import pytest

from production_planner.business_calendar import HolidayCalendar
from production_planner.domain import ProductionStage
from production_planner.services import PlanningService


def make_stage(
    name: str,
    days: float,
    start: Optional[date] = None,
    *,
    business: bool = True,
) -> ProductionStage:
    return ProductionStage(
        stage_name=name,
        start_date=start,
        duration_days=days,
        use_business_days=business,
    )


@pytest.fixture
def calendar():
    """Calendar with the default national holiday table."""
    return HolidayCalendar()


@pytest.fixture
def service():
    return PlanningService(calendar=HolidayCalendar())


@pytest.fixture
def five_stage_plan():
    """Unscheduled five stage plan anchored on Thursday 2025-01-02."""
    return [
        make_stage("Cutting", 1, date(2025, 1, 2)),
        make_stage("Bending", 2),
        make_stage("Welding", 3),
        make_stage("Painting", 1.5),
        make_stage("Inspection", 0.25),
    ]
