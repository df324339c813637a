from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

STATUS_CREATED = "Created"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"


@dataclass(frozen=True)
class OrderStatus:
    id: UUID
    name: str


@dataclass(frozen=True)
class Service:
    id: UUID
    name: str


@dataclass(frozen=True)
class Product:
    id: UUID
    service_id: UUID
    name: str
    unit_cost: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class OrderCreateRequest:
    reseller_id: UUID
    customer_id: UUID
    status_id: UUID
    items: tuple[OrderItemRequest, ...]


@dataclass(frozen=True)
class OrderSummary:
    id: UUID
    reseller_id: UUID
    customer_id: UUID
    status_id: UUID
    status_name: str
    created_date: datetime
    item_count: int
    total_cost: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class OrderItemDetail:
    id: UUID
    order_id: UUID
    product_id: UUID
    product_name: str
    service_id: UUID
    service_name: str
    quantity: int
    unit_cost: Decimal
    unit_price: Decimal
    total_cost: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class OrderDetail:
    id: UUID
    reseller_id: UUID
    customer_id: UUID
    status_id: UUID
    status_name: str
    created_date: datetime
    items: tuple[OrderItemDetail, ...]
    total_cost: Decimal
    total_price: Decimal

    @property
    def profit(self) -> Decimal:
        return self.total_price - self.total_cost


@dataclass(frozen=True)
class ProfitSummary:
    period: datetime
    total_profit: Decimal
