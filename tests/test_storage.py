from datetime import date

import pytest

from production_planner.business_calendar import HolidayCalendar
from production_planner.domain import Order
from production_planner.repository import DuplicateRecordError, RecordNotFoundError
from production_planner.services import PlanningService
from production_planner.storage import PlannerDatabase


@pytest.fixture
def database():
    with PlannerDatabase(":memory:") as db:
        yield db


def test_plan_survives_a_round_trip(database):
    service = PlanningService(
        order_repo=database.orders,
        template_repo=database.templates,
        calendar=HolidayCalendar(),
    )
    service.register_template("Frame", [("Cutting", 1), ("Welding", 2)])
    order = service.create_order("PED-9", "Cliente", delivery_date=date(2025, 2, 3))
    item = service.add_item(order.id, "Frame", product_type="Frame")
    service.get_plan(order.id, item.id)
    service.edit_stage(order.id, item.id, 0, "start_date", "2025-01-02")

    stored = database.orders.get(order.id)
    plan = stored.find_item(item.id).production_plan
    assert [stage.completed_date for stage in plan] == [date(2025, 1, 2), date(2025, 1, 7)]
    assert stored.delivery_date == date(2025, 2, 3)
    assert len(database.templates) == 1
    assert order.id in database.orders


def test_duplicate_and_missing_records(database):
    order = Order(id="o-1", order_number="PED-1", customer_name="Cliente")
    database.orders.add(order)
    with pytest.raises(DuplicateRecordError):
        database.orders.add(order)
    database.orders.remove("o-1")
    with pytest.raises(RecordNotFoundError):
        database.orders.remove("o-1")
    with pytest.raises(RecordNotFoundError):
        database.orders.get("o-1")


def test_upsert_replaces_whole_document(database):
    order = Order(id="o-1", order_number="PED-1", customer_name="Cliente")
    database.orders.upsert(order)
    order.customer_name = "Outro cliente"
    database.orders.upsert(order)
    assert [stored.customer_name for stored in database.orders] == ["Outro cliente"]
