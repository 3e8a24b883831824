from datetime import date

import pytest

from production_planner.domain import OrderStatus, StageStatus, StageTemplate
from production_planner.planning import PlanEditError
from production_planner.repository import DuplicateRecordError, RecordNotFoundError
from production_planner.services import TaskPriority, priority_for_delivery


@pytest.fixture
def welded_order(service):
    service.register_template(
        "Welded frame",
        [
            StageTemplate("Cutting", 1),
            StageTemplate("Welding", 2),
            StageTemplate("Curing", 2, use_business_days=False),
        ],
    )
    order = service.create_order(
        "PED-2025-001", "Metalúrgica Vale", delivery_date=date(2025, 1, 20)
    )
    item = service.add_item(order.id, "Press base", product_type="welded frame")
    return order, item


class TestTemplates:
    def test_plan_is_seeded_from_template(self, service, welded_order):
        order, item = welded_order
        plan = service.get_plan(order.id, item.id)
        assert [stage.stage_name for stage in plan] == ["Cutting", "Welding", "Curing"]
        assert [stage.duration_days for stage in plan] == [1, 2, 2]
        assert plan[2].use_business_days is False
        assert all(stage.start_date is None for stage in plan)
        stored = service.orders.get(order.id).find_item(item.id)
        assert len(stored.production_plan) == 3

    def test_tuple_stages(self, service):
        template = service.register_template("Shaft", [("Turning", 1.5)])
        assert template.stages[0].stage_name == "Turning"
        assert template.stages[0].use_business_days is True

    def test_empty_template_rejected(self, service):
        with pytest.raises(ValueError):
            service.register_template("Nothing", [])

    def test_item_without_template_has_empty_plan(self, service):
        order = service.create_order("PED-2", "Cliente")
        item = service.add_item(order.id, "Loose part", product_type="Unknown")
        assert service.get_plan(order.id, item.id) == []

    def test_new_plans_anchored_today(self, service, welded_order):
        order, item = welded_order
        service.update_planning_options(
            accumulate_fractional_days=False, anchor_new_plans_today=True
        )
        plan = service.get_plan(order.id, item.id, today=date(2025, 1, 2))
        assert plan[0].start_date == date(2025, 1, 2)
        assert plan[1].start_date == date(2025, 1, 3)
        assert plan[2].completed_date == date(2025, 1, 10)


class TestPlanEditing:
    def test_edits_are_persisted(self, service, welded_order):
        order, item = welded_order
        service.get_plan(order.id, item.id)
        service.edit_stage(order.id, item.id, 0, "startDate", "2025-01-02")
        stored = service.orders.get(order.id).find_item(item.id).production_plan
        assert stored[0].start_date == date(2025, 1, 2)
        assert stored[1].completed_date == date(2025, 1, 7)
        assert stored[2].start_date == date(2025, 1, 8)
        assert stored[2].completed_date == date(2025, 1, 10)

    def test_add_remove_and_recalculate(self, service, welded_order):
        order, item = welded_order
        service.get_plan(order.id, item.id)
        service.edit_stage(order.id, item.id, 0, "start_date", date(2025, 1, 2))
        plan = service.add_stage(order.id, item.id, "Packing")
        assert plan[-1].start_date is None
        plan = service.edit_stage(order.id, item.id, 3, "duration_days", "1")
        assert plan[3].duration_days == 1
        assert plan[3].start_date is None
        plan = service.remove_stage(order.id, item.id, 1)
        assert plan[1].start_date == date(2025, 1, 8)
        plan = service.recalculate_plan(order.id, item.id)
        assert plan[1].start_date == date(2025, 1, 3)
        assert plan[2].start_date == date(2025, 1, 6)

    def test_invalid_edit_raises(self, service, welded_order):
        order, item = welded_order
        service.get_plan(order.id, item.id)
        with pytest.raises(PlanEditError):
            service.edit_stage(order.id, item.id, 9, "notes", "x")

    def test_unknown_item(self, service, welded_order):
        order, _ = welded_order
        with pytest.raises(RecordNotFoundError):
            service.edit_stage(order.id, "missing", 0, "notes", "x")

    def test_accumulation_option_is_applied(self, service):
        service.update_planning_options(
            accumulate_fractional_days=True, anchor_new_plans_today=False
        )
        service.register_template("Bracket", [("Marking", 0.5), ("Drilling", 0.5)])
        order = service.create_order("PED-3", "Cliente")
        item = service.add_item(order.id, "Bracket", product_type="Bracket")
        service.get_plan(order.id, item.id)
        plan = service.edit_stage(order.id, item.id, 0, "start_date", "2025-01-02")
        assert plan[1].start_date == date(2025, 1, 2)


class TestOrders:
    def test_duplicate_order_id(self, service, welded_order):
        order, _ = welded_order
        with pytest.raises(DuplicateRecordError):
            service.orders.add(order)

    def test_update_status(self, service, welded_order):
        order, _ = welded_order
        updated = service.update_order_status(order.id, OrderStatus.IN_PRODUCTION)
        assert service.orders.get(order.id).status is OrderStatus.IN_PRODUCTION
        assert updated.status is OrderStatus.IN_PRODUCTION


class TestTaskBoard:
    @pytest.fixture
    def scheduled_order(self, service, welded_order):
        order, item = welded_order
        service.get_plan(order.id, item.id)
        service.edit_stage(order.id, item.id, 0, "start_date", "2025-01-02")
        service.edit_stage(order.id, item.id, 0, "status", "Completed")
        service.edit_stage(order.id, item.id, 1, "status", "InProgress")
        return order, item

    @pytest.mark.parametrize(
        "delivery, expected",
        [
            (None, TaskPriority.MEDIUM),
            (date(2025, 1, 9), TaskPriority.URGENT),
            (date(2025, 1, 13), TaskPriority.HIGH),
            (date(2025, 1, 17), TaskPriority.MEDIUM),
            (date(2025, 1, 31), TaskPriority.LOW),
        ],
    )
    def test_priority_from_delivery_date(self, delivery, expected):
        assert priority_for_delivery(delivery, today=date(2025, 1, 10)) is expected

    def test_list_tasks_filters_by_status(self, service, scheduled_order):
        tasks = service.list_tasks(status=StageStatus.IN_PROGRESS, today=date(2025, 1, 6))
        assert [task.stage.stage_name for task in tasks] == ["Welding"]
        assert tasks[0].order_number == "PED-2025-001"
        assert tasks[0].priority is TaskPriority.LOW

    def test_closed_orders_are_hidden(self, service, scheduled_order):
        order, _ = scheduled_order
        service.update_order_status(order.id, OrderStatus.CANCELLED)
        assert service.list_tasks(today=date(2025, 1, 6)) == []

    def test_board_buckets(self, service, scheduled_order):
        board = service.task_board(today=date(2025, 1, 8))
        assert [task.stage.stage_name for task in board.today] == ["Welding", "Curing"]
        assert {task.stage.stage_name for task in board.this_week} == {
            "Welding",
            "Curing",
        }
        assert [task.stage.stage_name for task in board.overdue] == ["Welding"]
        assert board.stats == {
            "total": 3,
            "pending": 1,
            "in_progress": 1,
            "completed": 1,
            "overdue": 1,
        }
