from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable
from uuid import UUID

from oms.domain.errors import NotFoundError, ValidationError
from oms.domain.models import OrderStatus, Product
from oms.repositories.contracts import ReferenceDataRepository


class ReferenceDataService:
    def __init__(self, repo: ReferenceDataRepository):
        self.repo = repo

    def status_exists(self, status_id: UUID) -> bool:
        return self.repo.status_exists(status_id)

    def all_products_exist(self, product_ids: Iterable[UUID]) -> bool:
        return self.repo.all_products_exist(set(product_ids))

    def list_statuses(self) -> list[OrderStatus]:
        return self.repo.list_statuses()

    def get_status_by_name(self, name: str) -> OrderStatus:
        status = self.repo.get_status_by_name(name)
        if not status:
            raise NotFoundError(f"Status '{name}' not found.")
        return status

    def list_products(self) -> list[Product]:
        return self.repo.list_products()

    def add_status(self, name: str) -> UUID:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": ["Status name is required."]})
        return self.repo.add_status(name)

    def add_service(self, name: str) -> UUID:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": ["Service name is required."]})
        return self.repo.add_service(name)

    def add_product(self, service_id: UUID, name: str, unit_cost, unit_price) -> UUID:
        errors: dict[str, list[str]] = {}
        name = (name or "").strip()
        if not name:
            errors.setdefault("name", []).append("Product name is required.")

        amounts = {}
        for field, raw in (("unit_cost", unit_cost), ("unit_price", unit_price)):
            try:
                value = Decimal(str(raw))
            except InvalidOperation:
                errors.setdefault(field, []).append(f"'{raw}' is not a valid amount.")
                continue
            if not value.is_finite() or value < 0:
                errors.setdefault(field, []).append("Amount must be >= 0.")
            amounts[field] = value

        if errors:
            raise ValidationError(errors)
        if not self.repo.get_service_by_id(service_id):
            raise NotFoundError(f"Service {service_id} not found.")
        return self.repo.add_product(service_id, name, amounts["unit_cost"], amounts["unit_price"])
