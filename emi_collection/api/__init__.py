"""FastAPI application and routes."""
from .main import app, create_app
from .schemas import (
    CreatePaymentRequest,
    CustomerDetail,
    CustomerSummary,
    PaymentResponse,
    PaymentResultData,
)

__all__ = [
    "app",
    "create_app",
    "CreatePaymentRequest",
    "CustomerDetail",
    "CustomerSummary",
    "PaymentResponse",
    "PaymentResultData",
]
