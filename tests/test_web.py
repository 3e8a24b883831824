from datetime import date

import pytest
from fastapi.testclient import TestClient

from production_planner.config import TestingConfig
from production_planner.web import create_app


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def plan_ids(app):
    service = app.state.planning_service
    service.register_template("Frame", [("Cutting", 1), ("Welding", 2), ("Painting", 1)])
    order = service.create_order("PED-10", "Cliente", delivery_date=date(2025, 2, 3))
    item = service.add_item(order.id, "Frame", product_type="Frame")
    return order.id, item.id


def _stages_url(order_id, item_id):
    return f"/orders/{order_id}/items/{item_id}/plan/stages"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_order_listing_and_details(client, plan_ids):
    order_id, item_id = plan_ids
    listing = client.get("/orders").json()
    assert [order["orderNumber"] for order in listing] == ["PED-10"]
    detail = client.get(f"/orders/{order_id}").json()
    assert detail["items"][0]["id"] == item_id
    assert detail["deliveryDate"] == "2025-02-03"


def test_unknown_order_is_404(client):
    response = client.get("/orders/missing")
    assert response.status_code == 404


def test_plan_is_seeded_and_edited(client, plan_ids):
    order_id, item_id = plan_ids
    plan = client.get(f"/orders/{order_id}/items/{item_id}/plan").json()
    assert [stage["stageName"] for stage in plan] == ["Cutting", "Welding", "Painting"]

    response = client.post(
        f"{_stages_url(order_id, item_id)}/0",
        data={"field": "startDate", "value": "02/01/2025"},
    )
    assert response.status_code == 200
    plan = response.json()
    assert plan[0]["startDate"] == "2025-01-02"
    assert plan[1]["startDate"] == "2025-01-03"
    assert plan[1]["completedDate"] == "2025-01-07"
    assert plan[2]["startDate"] == "2025-01-08"

    response = client.post(
        f"{_stages_url(order_id, item_id)}/1",
        data={"field": "durationDays", "value": "0,5"},
    )
    plan = response.json()
    assert plan[1]["durationDays"] == 0.5
    assert plan[1]["completedDate"] == "2025-01-03"
    assert plan[2]["startDate"] == "2025-01-06"


def test_progress_follows_status_edits(client, plan_ids):
    order_id, item_id = plan_ids
    client.get(f"/orders/{order_id}/items/{item_id}/plan")
    client.post(
        f"{_stages_url(order_id, item_id)}/0",
        data={"field": "status", "value": "Completed"},
    )
    progress = client.get(f"/orders/{order_id}/progress").json()
    assert progress["progress"] == 33
    assert progress["items"] == {item_id: 33}


@pytest.mark.parametrize(
    "field, value",
    [("colour", "red"), ("status", "Shipped"), ("startDate", "2025-13-40")],
)
def test_invalid_edits_are_422(client, plan_ids, field, value):
    order_id, item_id = plan_ids
    client.get(f"/orders/{order_id}/items/{item_id}/plan")
    response = client.post(
        f"{_stages_url(order_id, item_id)}/0", data={"field": field, "value": value}
    )
    assert response.status_code == 422


def test_add_delete_and_recalculate(client, plan_ids):
    order_id, item_id = plan_ids
    client.get(f"/orders/{order_id}/items/{item_id}/plan")
    client.post(
        f"{_stages_url(order_id, item_id)}/0",
        data={"field": "startDate", "value": "2025-01-02"},
    )
    plan = client.post(_stages_url(order_id, item_id), data={"stage_name": "Packing"}).json()
    assert plan[-1]["stageName"] == "Packing"
    assert plan[-1]["startDate"] is None

    plan = client.delete(f"{_stages_url(order_id, item_id)}/1").json()
    assert [stage["stageName"] for stage in plan] == ["Cutting", "Painting", "Packing"]
    assert plan[1]["startDate"] == "2025-01-08"

    plan = client.post(f"/orders/{order_id}/items/{item_id}/plan/recalculate").json()
    assert plan[1]["startDate"] == "2025-01-03"
    assert plan[2]["startDate"] == "2025-01-06"

    response = client.delete(f"{_stages_url(order_id, item_id)}/7")
    assert response.status_code == 422


def test_business_day_arithmetic(client):
    body = client.get(
        "/calendar/business-days", params={"start": "2024-12-31", "days": 3}
    ).json()
    assert body["result"] == "2025-01-06"
    assert body["isBusinessDay"] is True
    assert body["nextBusinessDay"] == "2025-01-02"
    assert body["previousBusinessDay"] == "2024-12-30"

    response = client.get("/calendar/business-days", params={"start": "not-a-date"})
    assert response.status_code == 422


def test_tasks(client, plan_ids):
    order_id, item_id = plan_ids
    client.get(f"/orders/{order_id}/items/{item_id}/plan")
    client.post(
        f"{_stages_url(order_id, item_id)}/1",
        data={"field": "status", "value": "In Progress"},
    )
    body = client.get("/tasks", params={"status": "in_progress"}).json()
    assert [task["stageName"] for task in body["tasks"]] == ["Welding"]
    assert body["tasks"][0]["orderNumber"] == "PED-10"
    assert body["stats"]["total"] == 3
    assert body["stats"]["in_progress"] == 1

    assert client.get("/tasks", params={"period": "someday"}).status_code == 422
    assert client.get("/tasks", params={"status": "Shipped"}).status_code == 422
