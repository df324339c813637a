from __future__ import annotations

from uuid import UUID

from oms.domain.errors import NotFoundError, ValidationError
from oms.domain.models import OrderCreateRequest


def validate_create_request(request: OrderCreateRequest, reference) -> None:
    """Check a create request against the reference data before it reaches the store.

    Raises ValidationError with every problem found, keyed by field name.
    """
    errors: dict[str, list[str]] = {}

    if not reference.status_exists(request.status_id):
        errors.setdefault("status_id", []).append(f"Status with ID {request.status_id} doesn't exist")

    items = list(request.items)
    if not items:
        errors.setdefault("items", []).append("Cannot create an order with no order items")
    else:
        if not all(int(it.quantity) > 0 for it in items):
            errors.setdefault("items", []).append("Cannot create an order with non-positive product quantity")
        if not reference.all_products_exist({it.product_id for it in items}):
            errors.setdefault("items", []).append("Some of the specified products do not exist")

    if errors:
        raise ValidationError(errors)


def validate_status_update(order_id: UUID, new_status_id: UUID, orders, reference) -> None:
    if not orders.order_exists(order_id):
        raise NotFoundError(f"Order {order_id} not found.")
    if not reference.status_exists(new_status_id):
        raise ValidationError({"new_status_id": [f"Status with ID {new_status_id} doesn't exist"]})
