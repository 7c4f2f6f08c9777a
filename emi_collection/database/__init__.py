"""Database package for the EMI collection service."""
from .connection import Database, get_db
from .models import Base, Customer, Payment, PaymentStatus

__all__ = [
    "Base",
    "Customer",
    "Database",
    "Payment",
    "PaymentStatus",
    "get_db",
]
