from .models import (
    OrderCreateRequest,
    OrderDetail,
    OrderItemDetail,
    OrderItemRequest,
    OrderStatus,
    OrderSummary,
    Product,
    ProfitSummary,
    Service,
)
from .errors import (
    ValidationError,
    NotFoundError,
    InvalidOrderRequestError,
    ReferentialInconsistencyError,
    MalformedPersistedStateError,
)

__all__ = [
    "OrderCreateRequest",
    "OrderDetail",
    "OrderItemDetail",
    "OrderItemRequest",
    "OrderStatus",
    "OrderSummary",
    "Product",
    "ProfitSummary",
    "Service",
    "ValidationError",
    "NotFoundError",
    "InvalidOrderRequestError",
    "ReferentialInconsistencyError",
    "MalformedPersistedStateError",
]
