from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from oms.repositories.sqlite_repo import SqliteRepository
from oms.services.order_service import OrderService
from oms.services.reference_service import ReferenceDataService
from oms.services.reporting_service import ReportingService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    reference: ReferenceDataService
    reporting: ReportingService
    orders: OrderService


def build_container(db_path: Path | str) -> AppContainer:
    repo = SqliteRepository(db_path)
    repo.init_db()

    reference = ReferenceDataService(repo)
    reporting = ReportingService(repo)
    orders = OrderService(repo, reporting)

    return AppContainer(
        repo=repo,
        reference=reference,
        reporting=reporting,
        orders=orders,
    )
