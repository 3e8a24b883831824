"""Progress and delivery figures derived from production plans."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from .domain import Order, OrderItem, OrderStatus, ProductionStage, StageStatus


def plan_progress(stages: Sequence[ProductionStage]) -> int:
    """Percentage of completed stages, rounded to a whole number."""

    if not stages:
        return 0
    completed = sum(1 for stage in stages if stage.status is StageStatus.COMPLETED)
    return round(completed * 100 / len(stages))


def item_progress(item: OrderItem) -> int:
    return plan_progress(item.production_plan)


def order_progress(order: Order) -> int:
    """Mean progress of the order's items."""

    if not order.items:
        return 0
    return round(sum(item_progress(item) for item in order.items) / len(order.items))


def order_delay_days(order: Order, *, today: Optional[date] = None) -> Optional[int]:
    """Days past the delivery date; negative while still ahead of it."""

    if order.delivery_date is None:
        return None
    today = today or date.today()
    return (today - order.delivery_date).days


def is_order_overdue(order: Order, *, today: Optional[date] = None) -> bool:
    delay = order_delay_days(order, today=today)
    if delay is None or order.status in {OrderStatus.COMPLETED, OrderStatus.CANCELLED}:
        return False
    return delay > 0 and order_progress(order) < 100


def delivery_status(order: Order, *, today: Optional[date] = None) -> int:
    """Classify the delivery situation.

    ``-2`` more than a week late, ``-1`` late, ``0`` due today, ``1`` up to a
    week ahead, ``2`` more than a week ahead. Orders without a delivery date
    count as on time.
    """

    delay = order_delay_days(order, today=today)
    if delay is None or delay == 0:
        return 0
    if delay > 7:
        return -2
    if delay > 0:
        return -1
    if delay > -7:
        return 1
    return 2


def projected_completion(order: Order) -> Optional[date]:
    """Latest completion date across the order's plans, if any is scheduled."""

    dates = [
        stage.completed_date
        for item in order.items
        for stage in item.production_plan
        if stage.completed_date is not None
    ]
    return max(dates, default=None)


__all__ = [
    "plan_progress",
    "item_progress",
    "order_progress",
    "order_delay_days",
    "is_order_overdue",
    "delivery_status",
    "projected_completion",
]
