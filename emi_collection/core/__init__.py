"""Core customer and payment logic."""
from .customers import CustomerService
from .exceptions import EMICollectionError, NotFoundError, StoreError, ValidationError
from .pagination import PageRequest, Pagination
from .payment_processor import PaymentProcessor, PaymentResult

__all__ = [
    "CustomerService",
    "EMICollectionError",
    "NotFoundError",
    "PageRequest",
    "Pagination",
    "PaymentProcessor",
    "PaymentResult",
    "StoreError",
    "ValidationError",
]
