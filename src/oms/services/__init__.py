from .order_service import OrderService
from .reference_service import ReferenceDataService
from .reporting_service import ReportingService

__all__ = [
    "OrderService",
    "ReferenceDataService",
    "ReportingService",
]
