from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Protocol

from oms.domain.models import OrderCreateRequest, OrderDetail
from oms.repositories.contracts import OrderRepository
from oms.repositories.sqlite_repo import utc_now


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def create_order(self, request: OrderCreateRequest) -> OrderDetail: ...


@dataclass
class RepositoryUnitOfWork:
    """Unit of Work adapter for order creation.

    The repository commits the order and its items in one SQL transaction;
    this class owns the clock that stamps ``created_date`` so services stay
    persistence-agnostic and tests can pin the time.
    """

    repo: OrderRepository
    clock: Callable[[], datetime] = field(default=utc_now)

    def __enter__(self) -> "RepositoryUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def create_order(self, request: OrderCreateRequest) -> OrderDetail:
        return self.repo.create_order(request, clock=self.clock)
