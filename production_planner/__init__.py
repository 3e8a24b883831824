"""Production planning for a metal-fabrication shop.

This package provides the stage data model, a working-day calendar, the
business-day scheduling engine that propagates start and completion dates
along a production plan, and a service layer over a document store.
"""

from .business_calendar import HolidayCalendar
from .domain import (
    Order,
    OrderItem,
    OrderStatus,
    ProductionStage,
    ProductTemplate,
    StageStatus,
    StageTemplate,
)
from .planning import PlanEditError, add_stage, apply_stage_edit, remove_stage
from .scheduling import propagate, recalculate_from_first_stage, recalculate_from_stage
from .services import PlanningService, TaskBoard

__all__ = [
    "HolidayCalendar",
    "Order",
    "OrderItem",
    "OrderStatus",
    "ProductionStage",
    "ProductTemplate",
    "StageStatus",
    "StageTemplate",
    "PlanEditError",
    "add_stage",
    "apply_stage_edit",
    "remove_stage",
    "propagate",
    "recalculate_from_first_stage",
    "recalculate_from_stage",
    "PlanningService",
    "TaskBoard",
]
