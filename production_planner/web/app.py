"""FastAPI-based HTTP interface for the production planner."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse

from ..config import Config, build_calendar
from ..dates import parse_date
from ..domain import Order, ProductionStage, StageStatus, StageTemplate
from ..logging_config import configure_logging, get_logger
from ..planning import PlanEditError
from ..progress import (
    delivery_status,
    is_order_overdue,
    item_progress,
    order_progress,
    projected_completion,
)
from ..repository import RecordNotFoundError
from ..services import PlanningOptions, PlanningService, StageTask
from ..storage import PlannerDatabase

logger = get_logger(__name__)

TASK_PERIODS = ("today", "this_week", "pending", "in_progress", "completed", "overdue")


def create_app(config: type = Config) -> FastAPI:
    configure_logging(config.LOG_LEVEL, config.LOG_FILE)
    database = PlannerDatabase(config.DATABASE_PATH)
    service = PlanningService(
        order_repo=database.orders,
        template_repo=database.templates,
        calendar=build_calendar(config),
        planning_options=PlanningOptions(
            accumulate_fractional_days=config.ACCUMULATE_FRACTIONAL_DAYS
        ),
    )
    if config.LOAD_DEMO_DATA:
        ensure_demo_data(service)

    app = FastAPI(title="Fabrication Production Planner")
    app.state.planning_service = service
    app.state.database = database

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - framework hook
        database.close()

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse({"detail": str(exc)}, status_code=404)

    @app.exception_handler(PlanEditError)
    async def invalid_edit_handler(request: Request, exc: PlanEditError):
        logger.warning("Rejected stage edit", path=request.url.path, error=str(exc))
        return JSONResponse({"detail": str(exc)}, status_code=422)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/orders")
    async def list_orders(request: Request):
        service: PlanningService = request.app.state.planning_service
        orders = sorted(
            service.orders.list(),
            key=lambda order: (order.delivery_date or date.max, order.order_number),
        )
        return [order_summary(order) for order in orders]

    @app.get("/orders/{order_id}")
    async def get_order(order_id: str, request: Request):
        service: PlanningService = request.app.state.planning_service
        order = service.orders.get(order_id)
        document = order.to_document()
        document.update(order_summary(order))
        return document

    @app.get("/orders/{order_id}/progress")
    async def get_order_progress(order_id: str, request: Request):
        service: PlanningService = request.app.state.planning_service
        order = service.orders.get(order_id)
        completion = projected_completion(order)
        return {
            "orderId": order.id,
            "progress": order_progress(order),
            "items": {item.id: item_progress(item) for item in order.items},
            "overdue": is_order_overdue(order),
            "deliveryStatus": delivery_status(order),
            "projectedCompletion": completion.isoformat() if completion else None,
        }

    @app.get("/orders/{order_id}/items/{item_id}/plan")
    async def get_plan(order_id: str, item_id: str, request: Request):
        service: PlanningService = request.app.state.planning_service
        return plan_response(service.get_plan(order_id, item_id))

    @app.post("/orders/{order_id}/items/{item_id}/plan/stages/{index}")
    async def edit_stage(
        order_id: str,
        item_id: str,
        index: int,
        request: Request,
        field: str = Form(...),
        value: str = Form(""),
    ):
        service: PlanningService = request.app.state.planning_service
        if field in {"startDate", "start_date"} and value:
            parsed = parse_date(value)
            if not parsed.ok:
                raise HTTPException(status_code=422, detail=parsed.error)
        stages = service.edit_stage(order_id, item_id, index, field, value)
        return plan_response(stages)

    @app.post("/orders/{order_id}/items/{item_id}/plan/stages")
    async def append_stage(
        order_id: str,
        item_id: str,
        request: Request,
        stage_name: str = Form(""),
    ):
        service: PlanningService = request.app.state.planning_service
        return plan_response(service.add_stage(order_id, item_id, stage_name.strip()))

    @app.delete("/orders/{order_id}/items/{item_id}/plan/stages/{index}")
    async def delete_stage(order_id: str, item_id: str, index: int, request: Request):
        service: PlanningService = request.app.state.planning_service
        return plan_response(service.remove_stage(order_id, item_id, index))

    @app.post("/orders/{order_id}/items/{item_id}/plan/recalculate")
    async def recalculate_plan(order_id: str, item_id: str, request: Request):
        service: PlanningService = request.app.state.planning_service
        return plan_response(service.recalculate_plan(order_id, item_id))

    @app.get("/calendar/business-days")
    async def business_days(request: Request, start: str, days: int = 0):
        service: PlanningService = request.app.state.planning_service
        parsed = parse_date(start)
        if parsed.value is None:
            raise HTTPException(
                status_code=422, detail=parsed.error or "A start date is required"
            )
        calendar = service.calendar
        return {
            "start": parsed.value.isoformat(),
            "days": days,
            "result": calendar.add_business_days(parsed.value, days).isoformat(),
            "isBusinessDay": calendar.is_business_day(parsed.value),
            "nextBusinessDay": calendar.next_business_day(parsed.value).isoformat(),
            "previousBusinessDay": calendar.previous_business_day(parsed.value).isoformat(),
        }

    @app.get("/tasks")
    async def tasks(
        request: Request,
        status: Optional[str] = None,
        period: Optional[str] = None,
    ):
        service: PlanningService = request.app.state.planning_service
        if period is not None:
            if period not in TASK_PERIODS:
                raise HTTPException(status_code=422, detail=f"Unknown period {period!r}")
            board = service.task_board()
            selected: Sequence[StageTask] = getattr(board, period)
            stats = board.stats
        else:
            try:
                wanted = StageStatus.parse(status) if status else None
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            selected = service.list_tasks(status=wanted)
            stats = service.task_board().stats
        return {"tasks": [task_response(task) for task in selected], "stats": stats}

    return app


def order_summary(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "customerName": order.customer_name,
        "deliveryDate": order.delivery_date.isoformat() if order.delivery_date else None,
        "status": order.status.value,
        "progress": order_progress(order),
        "overdue": is_order_overdue(order),
    }


def plan_response(stages: Sequence[ProductionStage]) -> List[Dict[str, Any]]:
    return [stage.to_document() for stage in stages]


def task_response(task: StageTask) -> Dict[str, Any]:
    document = task.stage.to_document()
    document.update(
        {
            "id": task.id,
            "orderId": task.order_id,
            "orderNumber": task.order_number,
            "customerName": task.customer_name,
            "projectName": task.project_name,
            "itemId": task.item_id,
            "itemDescription": task.item_description,
            "itemCode": task.item_code,
            "stageIndex": task.stage_index,
            "priority": task.priority.label,
            "deliveryDate": task.delivery_date.isoformat() if task.delivery_date else None,
        }
    )
    return document


def ensure_demo_data(service: PlanningService) -> None:
    if len(service.orders) > 0:
        return

    service.register_template(
        "Estrutura soldada",
        [
            StageTemplate("Corte de chapas", 1.0),
            StageTemplate("Dobra", 0.5),
            StageTemplate("Montagem", 2.0),
            StageTemplate("Soldagem", 3.0),
            StageTemplate("Jateamento e pintura", 2.0),
            StageTemplate("Cura da pintura", 2.0, use_business_days=False),
            StageTemplate("Inspeção final", 0.25),
        ],
    )
    service.register_template(
        "Peça usinada",
        [
            StageTemplate("Corte de barra", 0.25),
            StageTemplate("Torneamento", 1.5),
            StageTemplate("Fresamento", 1.0),
            StageTemplate("Inspeção dimensional", 0.125),
        ],
    )

    order = service.create_order(
        "PED-2025-031",
        "Metalúrgica Vale do Aço Ltda.",
        delivery_date=date.today() + timedelta(days=21),
        project_name="Ampliação da linha de prensas",
    )
    frame = service.add_item(
        order.id,
        "Base soldada para prensa hidráulica",
        product_type="Estrutura soldada",
        code="BS-450",
    )
    shaft = service.add_item(
        order.id,
        "Eixo de acionamento",
        product_type="Peça usinada",
        code="EX-12",
        quantity=4,
    )
    for item in (frame, shaft):
        service.get_plan(order.id, item.id)
        service.edit_stage(order.id, item.id, 0, "start_date", date.today())
