from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Protocol
from uuid import UUID

from oms.domain.models import (
    OrderCreateRequest,
    OrderDetail,
    OrderStatus,
    OrderSummary,
    Product,
    ProfitSummary,
    Service,
)


class ReferenceDataRepository(Protocol):
    def status_exists(self, status_id: UUID) -> bool: ...
    def all_products_exist(self, product_ids: Iterable[UUID]) -> bool: ...
    def add_status(self, name: str) -> UUID: ...
    def get_status_by_name(self, name: str) -> Optional[OrderStatus]: ...
    def list_statuses(self) -> list[OrderStatus]: ...
    def add_service(self, name: str) -> UUID: ...
    def get_service_by_id(self, service_id: UUID) -> Optional[Service]: ...
    def add_product(self, service_id: UUID, name: str, unit_cost: Decimal, unit_price: Decimal) -> UUID: ...
    def list_products(self) -> list[Product]: ...


class OrderRepository(Protocol):
    def list_orders(self, status_name: Optional[str] = None) -> list[OrderSummary]: ...
    def get_order_detail(self, order_id: UUID) -> OrderDetail: ...
    def order_exists(self, order_id: UUID) -> bool: ...
    def update_order_status(self, order_id: UUID, status_id: UUID) -> None: ...
    def create_order(self, request: OrderCreateRequest, clock: Callable[[], datetime] = ...) -> OrderDetail: ...


class ReportingRepository(Protocol):
    def completed_order_profits(self, status_name: str = ...) -> list[tuple[datetime, Decimal]]: ...
    def list_orders(self, status_name: Optional[str] = None) -> list[OrderSummary]: ...


class ProfitReport(Protocol):
    def monthly_profit_summary(self) -> list[ProfitSummary]: ...
