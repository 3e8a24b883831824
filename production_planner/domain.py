"""Core data structures for the fabrication shop production planner."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .dates import parse_date

MIN_DURATION_DAYS = 0.125


class StageStatus(str, Enum):
    """Progress states of a single production stage."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: object) -> "StageStatus":
        if isinstance(value, StageStatus):
            return value
        token = str(value or "").strip().lower().replace("_", "").replace(" ", "")
        for status in cls:
            if token in {
                status.name.lower().replace("_", ""),
                status.value.lower().replace(" ", ""),
            }:
                return status
        raise ValueError(f"Unknown stage status {value!r}")


class OrderStatus(str, Enum):
    """Lifecycle of a customer order."""

    OPEN = "Open"
    IN_PRODUCTION = "In Production"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_duration(value: object) -> float:
    """Convert raw form input into a stage duration in days.

    Anything that is not a finite number counts as ``0``; the result is
    clamped to the one hour floor of ``0.125`` days.
    """

    if isinstance(value, bool):
        number = 0.0
    else:
        try:
            number = float(str(value).strip().replace(",", ".")) if value is not None else 0.0
        except ValueError:
            number = 0.0
    if number != number or number in (float("inf"), float("-inf")):
        number = 0.0
    return max(MIN_DURATION_DAYS, number)


@dataclass(slots=True)
class ProductionStage:
    """One step of an order item's production plan."""

    stage_name: str
    status: StageStatus = StageStatus.PENDING
    start_date: Optional[date] = None
    completed_date: Optional[date] = None
    duration_days: float = 0.0
    use_business_days: bool = True
    responsible_id: Optional[str] = None
    assigned_resource_id: Optional[str] = None
    estimated_hours: Optional[float] = None
    notes: str = ""

    @property
    def effective_duration(self) -> float:
        return max(MIN_DURATION_DAYS, self.duration_days)

    def to_document(self) -> Dict[str, Any]:
        return {
            "stageName": self.stage_name,
            "status": self.status.value,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "completedDate": (
                self.completed_date.isoformat() if self.completed_date else None
            ),
            "durationDays": self.duration_days,
            "useBusinessDays": self.use_business_days,
            "responsibleId": self.responsible_id,
            "assignedResourceId": self.assigned_resource_id,
            "estimatedHours": self.estimated_hours,
            "notes": self.notes,
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ProductionStage":
        try:
            status = StageStatus.parse(document.get("status"))
        except ValueError:
            status = StageStatus.PENDING
        try:
            duration = max(float(document.get("durationDays") or 0.0), 0.0)
        except (TypeError, ValueError):
            duration = 0.0
        return cls(
            stage_name=str(document.get("stageName") or ""),
            status=status,
            start_date=parse_date(document.get("startDate")).value,
            completed_date=parse_date(document.get("completedDate")).value,
            duration_days=duration,
            use_business_days=document.get("useBusinessDays") is not False,
            responsible_id=document.get("responsibleId"),
            assigned_resource_id=document.get("assignedResourceId"),
            estimated_hours=document.get("estimatedHours"),
            notes=str(document.get("notes") or ""),
        )


@dataclass(slots=True)
class StageTemplate:
    """Default stage definition used to seed new plans."""

    stage_name: str
    duration_days: float = 1.0
    use_business_days: bool = True

    def instantiate(self) -> ProductionStage:
        return ProductionStage(
            stage_name=self.stage_name,
            duration_days=self.duration_days,
            use_business_days=self.use_business_days,
        )


@dataclass(slots=True)
class ProductTemplate:
    """Default stage list for a product type."""

    id: str
    product_type: str
    stages: List[StageTemplate] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productType": self.product_type,
            "stages": [
                {
                    "stageName": stage.stage_name,
                    "durationDays": stage.duration_days,
                    "useBusinessDays": stage.use_business_days,
                }
                for stage in self.stages
            ],
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ProductTemplate":
        return cls(
            id=str(document["id"]),
            product_type=str(document.get("productType") or ""),
            stages=[
                StageTemplate(
                    stage_name=str(stage.get("stageName") or ""),
                    duration_days=float(stage.get("durationDays") or 0.0),
                    use_business_days=stage.get("useBusinessDays") is not False,
                )
                for stage in document.get("stages") or []
            ],
        )


@dataclass(slots=True)
class OrderItem:
    """A line of a customer order together with its production plan."""

    id: str
    description: str
    product_type: str = ""
    code: str = ""
    quantity: float = 1.0
    production_plan: List[ProductionStage] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "productType": self.product_type,
            "code": self.code,
            "quantity": self.quantity,
            "productionPlan": [stage.to_document() for stage in self.production_plan],
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "OrderItem":
        return cls(
            id=str(document["id"]),
            description=str(document.get("description") or ""),
            product_type=str(document.get("productType") or ""),
            code=str(document.get("code") or ""),
            quantity=float(document.get("quantity") or 0.0),
            production_plan=[
                ProductionStage.from_document(stage)
                for stage in document.get("productionPlan") or []
            ],
        )


@dataclass(slots=True)
class Order:
    """Customer order with the items produced for it."""

    id: str
    order_number: str
    customer_name: str
    delivery_date: Optional[date] = None
    status: OrderStatus = OrderStatus.OPEN
    project_name: str = ""
    items: List[OrderItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)

    def find_item(self, item_id: str) -> Optional[OrderItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "deliveryDate": self.delivery_date.isoformat() if self.delivery_date else None,
            "status": self.status.value,
            "projectName": self.project_name,
            "items": [item.to_document() for item in self.items],
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Order":
        try:
            created_at = datetime.fromisoformat(str(document.get("createdAt")))
        except ValueError:
            created_at = _utcnow()
        try:
            status = OrderStatus(document.get("status"))
        except ValueError:
            status = OrderStatus.OPEN
        return cls(
            id=str(document["id"]),
            order_number=str(document.get("orderNumber") or ""),
            customer_name=str(document.get("customerName") or ""),
            delivery_date=parse_date(document.get("deliveryDate")).value,
            status=status,
            project_name=str(document.get("projectName") or ""),
            items=[OrderItem.from_document(item) for item in document.get("items") or []],
            created_at=created_at,
        )


__all__ = [
    "MIN_DURATION_DAYS",
    "StageStatus",
    "OrderStatus",
    "parse_duration",
    "ProductionStage",
    "StageTemplate",
    "ProductTemplate",
    "OrderItem",
    "Order",
]
