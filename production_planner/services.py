"""Service layer that exposes the production planning use-cases."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

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
from .logging_config import get_logger
from .planning import Recompute, add_stage, apply_stage_edit, remove_stage
from .repository import InMemoryRepository, RecordNotFoundError
from .scheduling import recalculate_from_first_stage

logger = get_logger(__name__)

TemplateStage = Union[StageTemplate, Tuple[str, float]]


@dataclass(slots=True)
class PlanningOptions:
    """Fine-tuning parameters used by the scheduling engine."""

    accumulate_fractional_days: bool = False
    anchor_new_plans_today: bool = False


class TaskPriority(IntEnum):
    """Urgency of a stage derived from its order's delivery date."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4

    @property
    def label(self) -> str:
        return {
            TaskPriority.LOW: "Low",
            TaskPriority.MEDIUM: "Medium",
            TaskPriority.HIGH: "High",
            TaskPriority.URGENT: "Urgent",
        }[self]


def priority_for_delivery(
    delivery_date: Optional[date], *, today: Optional[date] = None
) -> TaskPriority:
    if delivery_date is None:
        return TaskPriority.MEDIUM
    days_left = (delivery_date - (today or date.today())).days
    if days_left < 0:
        return TaskPriority.URGENT
    if days_left <= 3:
        return TaskPriority.HIGH
    if days_left <= 7:
        return TaskPriority.MEDIUM
    return TaskPriority.LOW


@dataclass(slots=True)
class StageTask:
    """A plan stage seen as a task on the shop floor board."""

    id: str
    order_id: str
    order_number: str
    customer_name: str
    item_id: str
    item_description: str
    stage_index: int
    stage: ProductionStage
    priority: TaskPriority
    delivery_date: Optional[date] = None
    project_name: str = ""
    item_code: str = ""

    @property
    def due_date(self) -> Optional[date]:
        return self.stage.completed_date or self.stage.start_date

    def is_overdue(self, today: date) -> bool:
        due = self.due_date
        return (
            due is not None
            and due < today
            and self.stage.status is not StageStatus.COMPLETED
        )


@dataclass(slots=True)
class TaskBoard:
    """Tasks grouped the way the shop floor looks at them."""

    today: List[StageTask] = field(default_factory=list)
    this_week: List[StageTask] = field(default_factory=list)
    pending: List[StageTask] = field(default_factory=list)
    in_progress: List[StageTask] = field(default_factory=list)
    completed: List[StageTask] = field(default_factory=list)
    overdue: List[StageTask] = field(default_factory=list)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "total": len(self.pending) + len(self.in_progress) + len(self.completed),
            "pending": len(self.pending),
            "in_progress": len(self.in_progress),
            "completed": len(self.completed),
            "overdue": len(self.overdue),
        }


class PlanningService:
    """Facade that exposes planning use-cases to clients."""

    def __init__(
        self,
        order_repo: Optional[InMemoryRepository[Order]] = None,
        template_repo: Optional[InMemoryRepository[ProductTemplate]] = None,
        calendar: Optional[HolidayCalendar] = None,
        planning_options: Optional[PlanningOptions] = None,
    ) -> None:
        self.orders = order_repo if order_repo is not None else InMemoryRepository(Order)
        self.templates = (
            template_repo
            if template_repo is not None
            else InMemoryRepository(ProductTemplate)
        )
        self.calendar = calendar or HolidayCalendar()
        self.planning_options = planning_options or PlanningOptions()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def update_planning_options(
        self,
        *,
        accumulate_fractional_days: bool,
        anchor_new_plans_today: bool,
    ) -> PlanningOptions:
        self.planning_options = PlanningOptions(
            accumulate_fractional_days=accumulate_fractional_days,
            anchor_new_plans_today=anchor_new_plans_today,
        )
        logger.info(
            "Planning options updated",
            accumulate_fractional_days=accumulate_fractional_days,
            anchor_new_plans_today=anchor_new_plans_today,
        )
        return self.planning_options

    def add_holiday(self, day: date) -> None:
        self.calendar.add_holiday(day)

    # ------------------------------------------------------------------
    # Product templates
    # ------------------------------------------------------------------
    def register_template(
        self, product_type: str, stages: Sequence[TemplateStage]
    ) -> ProductTemplate:
        if not stages:
            raise ValueError("A product template must contain at least one stage")
        template = ProductTemplate(
            id=str(uuid4()),
            product_type=product_type,
            stages=[
                stage
                if isinstance(stage, StageTemplate)
                else StageTemplate(stage_name=stage[0], duration_days=stage[1])
                for stage in stages
            ],
        )
        self.templates.add(template)
        return template

    def find_template(self, product_type: str) -> Optional[ProductTemplate]:
        wanted = product_type.strip().lower()
        for template in self.templates:
            if template.product_type.strip().lower() == wanted:
                return template
        return None

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
    def create_order(
        self,
        order_number: str,
        customer_name: str,
        *,
        delivery_date: Optional[date] = None,
        project_name: str = "",
    ) -> Order:
        order = Order(
            id=str(uuid4()),
            order_number=order_number,
            customer_name=customer_name,
            delivery_date=delivery_date,
            project_name=project_name,
        )
        self.orders.add(order)
        return order

    def add_item(
        self,
        order_id: str,
        description: str,
        *,
        product_type: str = "",
        code: str = "",
        quantity: float = 1.0,
    ) -> OrderItem:
        order = self.orders.get(order_id)
        item = OrderItem(
            id=str(uuid4()),
            description=description,
            product_type=product_type,
            code=code,
            quantity=quantity,
        )
        order.items.append(item)
        self.orders.upsert(order)
        return item

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        order = self.orders.get(order_id)
        order.status = status
        self.orders.upsert(order)
        return order

    def _get_item(self, order_id: str, item_id: str) -> Tuple[Order, OrderItem]:
        order = self.orders.get(order_id)
        item = order.find_item(item_id)
        if item is None:
            raise RecordNotFoundError(
                f"Item {item_id!r} not found in order {order_id!r}"
            )
        return order, item

    # ------------------------------------------------------------------
    # Production plans
    # ------------------------------------------------------------------
    def get_plan(
        self, order_id: str, item_id: str, *, today: Optional[date] = None
    ) -> List[ProductionStage]:
        """Return the item's plan, seeding it from its product template."""

        order, item = self._get_item(order_id, item_id)
        if item.production_plan:
            return item.production_plan
        template = self.find_template(item.product_type) if item.product_type else None
        if template is None:
            return []
        stages = [stage.instantiate() for stage in template.stages]
        if self.planning_options.anchor_new_plans_today and stages:
            stages[0].start_date = today or date.today()
            stages = recalculate_from_first_stage(
                stages,
                self.calendar,
                accumulate_fractional_days=self.planning_options.accumulate_fractional_days,
            )
        logger.info(
            "Plan instantiated from template",
            order_id=order_id,
            item_id=item_id,
            product_type=template.product_type,
            stages=len(stages),
        )
        return self.save_plan(order_id, item_id, stages, order=order)

    def save_plan(
        self,
        order_id: str,
        item_id: str,
        stages: Iterable[ProductionStage],
        *,
        order: Optional[Order] = None,
    ) -> List[ProductionStage]:
        """Replace the item's whole plan and write the order back."""

        if order is None:
            order = self.orders.get(order_id)
        item = order.find_item(item_id)
        if item is None:
            raise RecordNotFoundError(
                f"Item {item_id!r} not found in order {order_id!r}"
            )
        item.production_plan = [replace(stage) for stage in stages]
        self.orders.upsert(order)
        logger.info(
            "Plan saved",
            order_id=order_id,
            item_id=item_id,
            stages=len(item.production_plan),
        )
        return item.production_plan

    def edit_stage(
        self,
        order_id: str,
        item_id: str,
        index: int,
        field_name: str,
        value: object,
        *,
        today: Optional[date] = None,
    ) -> List[ProductionStage]:
        order, item = self._get_item(order_id, item_id)
        stages, strategy = apply_stage_edit(
            item.production_plan,
            index,
            field_name,
            value,
            self.calendar,
            today=today,
            accumulate_fractional_days=self.planning_options.accumulate_fractional_days,
        )
        logger.info(
            "Stage edited",
            order_id=order_id,
            item_id=item_id,
            index=index,
            field=field_name,
            recompute=strategy.value,
        )
        if strategy is not Recompute.NONE:
            logger.debug(
                "Plan recomputed",
                first_stage=0 if strategy is Recompute.FULL else index,
                stages=len(stages),
            )
        return self.save_plan(order_id, item_id, stages, order=order)

    def add_stage(
        self, order_id: str, item_id: str, stage_name: str = ""
    ) -> List[ProductionStage]:
        order, item = self._get_item(order_id, item_id)
        return self.save_plan(
            order_id, item_id, add_stage(item.production_plan, stage_name), order=order
        )

    def remove_stage(
        self, order_id: str, item_id: str, index: int
    ) -> List[ProductionStage]:
        order, item = self._get_item(order_id, item_id)
        return self.save_plan(
            order_id, item_id, remove_stage(item.production_plan, index), order=order
        )

    def recalculate_plan(self, order_id: str, item_id: str) -> List[ProductionStage]:
        order, item = self._get_item(order_id, item_id)
        stages = recalculate_from_first_stage(
            item.production_plan,
            self.calendar,
            accumulate_fractional_days=self.planning_options.accumulate_fractional_days,
        )
        return self.save_plan(order_id, item_id, stages, order=order)

    # ------------------------------------------------------------------
    # Task board
    # ------------------------------------------------------------------
    def list_tasks(
        self,
        *,
        status: Optional[StageStatus] = None,
        responsible_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[StageTask]:
        """Stages of all open orders, most urgent first."""

        today = today or date.today()
        tasks: List[StageTask] = []
        for order in self.orders:
            if order.status in {OrderStatus.COMPLETED, OrderStatus.CANCELLED}:
                continue
            priority = priority_for_delivery(order.delivery_date, today=today)
            for item_index, item in enumerate(order.items):
                for stage_index, stage in enumerate(item.production_plan):
                    if status is not None and stage.status is not status:
                        continue
                    if responsible_id is not None and stage.responsible_id != responsible_id:
                        continue
                    tasks.append(
                        StageTask(
                            id=f"{order.id}-{item_index}-{stage_index}",
                            order_id=order.id,
                            order_number=order.order_number,
                            customer_name=order.customer_name,
                            item_id=item.id,
                            item_description=item.description,
                            stage_index=stage_index,
                            stage=stage,
                            priority=priority,
                            delivery_date=order.delivery_date,
                            project_name=order.project_name,
                            item_code=item.code,
                        )
                    )
        tasks.sort(
            key=lambda task: (
                -int(task.priority),
                task.stage.start_date or date.max,
                task.order_number,
                task.stage_index,
            )
        )
        return tasks

    def task_board(self, *, today: Optional[date] = None) -> TaskBoard:
        today = today or date.today()
        week_start = today - timedelta(days=today.weekday())
        week_end = week_start + timedelta(days=6)
        board = TaskBoard()
        for task in self.list_tasks(today=today):
            stage = task.stage
            in_progress = stage.status is StageStatus.IN_PROGRESS
            if stage.start_date == today or in_progress:
                board.today.append(task)
            if (
                stage.start_date is not None
                and week_start <= stage.start_date <= week_end
            ) or (
                in_progress and stage.start_date is not None and stage.start_date <= week_end
            ):
                board.this_week.append(task)
            if stage.status is StageStatus.PENDING:
                board.pending.append(task)
            elif in_progress:
                board.in_progress.append(task)
            else:
                board.completed.append(task)
            if task.is_overdue(today):
                board.overdue.append(task)
        return board


__all__ = [
    "PlanningService",
    "PlanningOptions",
    "TaskPriority",
    "StageTask",
    "TaskBoard",
    "priority_for_delivery",
]
