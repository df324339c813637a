from __future__ import annotations

import logging
from typing import Callable, Optional
from uuid import UUID

from oms.domain.models import OrderCreateRequest, OrderDetail, OrderSummary, ProfitSummary
from oms.repositories.contracts import OrderRepository, ProfitReport
from oms.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger("oms.orders")


class OrderService:
    """Entry point for the boundary layer; forwards to the store and the profit report."""

    def __init__(
        self,
        repo: OrderRepository,
        reporting: ProfitReport,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ):
        self.repo = repo
        self.reporting = reporting
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))

    def list_orders(self, status_name: Optional[str] = None) -> list[OrderSummary]:
        return self.repo.list_orders(status_name)

    def get_order_detail(self, order_id: UUID) -> OrderDetail:
        return self.repo.get_order_detail(order_id)

    def order_exists(self, order_id: UUID) -> bool:
        return self.repo.order_exists(order_id)

    def update_order_status(self, order_id: UUID, status_id: UUID) -> None:
        self.repo.update_order_status(order_id, status_id)
        log.info("order_status_updated order_id=%s status_id=%s", order_id, status_id)

    def create_order(self, request: OrderCreateRequest) -> OrderDetail:
        with self.uow_factory() as uow:
            order = uow.create_order(request)
        log.info("order_created order_id=%s items=%s status=%s", order.id, len(order.items), order.status_name)
        return order

    def get_profit_summary(self) -> list[ProfitSummary]:
        return self.reporting.monthly_profit_summary()
