"""
Pydantic schemas for API request/response models.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from emi_collection.database.models import PaymentStatus

# Amounts stay Decimal in Python and go out as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CreatePaymentRequest(BaseModel):
    """
    Request schema for submitting a payment.

    Both fields are optional here so that missing values reach the payment
    processor and get its validation message.
    """

    account_number: Optional[str] = Field(default=None, description="Customer account number")
    payment_amount: Optional[Decimal] = Field(default=None, description="Amount paid")

    model_config = {
        "json_schema_extra": {
            "examples": [{"account_number": "ACC001", "payment_amount": 5000}]
        }
    }


class PaginationMeta(BaseModel):
    """Pagination block of list responses."""

    page: int
    limit: int
    total: int
    totalPages: int
    hasMore: bool


class CustomerSummary(BaseModel):
    """Customer fields shown in listings."""

    model_config = ConfigDict(from_attributes=True)

    account_number: str = Field(..., description="Customer account number")
    issue_date: date = Field(..., description="Loan issue date")
    interest_rate: Money = Field(..., description="Annual interest rate (percent)")
    tenure: int = Field(..., description="Tenure in months")
    emi_due: Money = Field(..., description="Outstanding EMI due")
    customer_name: str = Field(..., description="Customer name")
    total_loan_amount: Money = Field(..., description="Total loan amount")


class CustomerDetail(CustomerSummary):
    """Full customer row."""

    id: int = Field(..., description="Internal customer ID")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")


class PaymentHistoryItem(BaseModel):
    """One payment in an account's history."""

    id: int = Field(..., description="Payment ID")
    payment_date: datetime = Field(..., description="When the payment was made")
    payment_amount: Money = Field(..., description="Amount paid")
    status: PaymentStatus = Field(..., description="Payment status")
    customer_name: str = Field(..., description="Customer name")


class PaymentListItem(PaymentHistoryItem):
    """One payment in the global payment listing."""

    account_number: str = Field(..., description="Customer account number")


class PaymentResultData(BaseModel):
    """Committed payment summary."""

    payment_id: int = Field(..., description="Payment ID")
    account_number: str = Field(..., description="Customer account number")
    payment_amount: Money = Field(..., description="Amount applied")
    remaining_due: Money = Field(..., description="EMI due after the payment")


class CustomerListResponse(BaseModel):
    """Response schema for the customer listing."""

    success: bool = True
    data: List[CustomerSummary]
    pagination: PaginationMeta


class CustomerResponse(BaseModel):
    """Response schema for a single customer."""

    success: bool = True
    data: CustomerDetail


class PaymentResponse(BaseModel):
    """Response schema for a submitted payment."""

    success: bool = True
    message: str = "Payment processed successfully"
    data: PaymentResultData

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "message": "Payment processed successfully",
                    "data": {
                        "payment_id": 6,
                        "account_number": "ACC001",
                        "payment_amount": 5000,
                        "remaining_due": 0,
                    },
                }
            ]
        }
    }


class PaymentListResponse(BaseModel):
    """Response schema for the payment listing."""

    success: bool = True
    data: List[PaymentListItem]
    pagination: PaginationMeta


class PaymentHistoryResponse(BaseModel):
    """Response schema for one account's payment history."""

    success: bool = True
    data: List[PaymentHistoryItem]


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    success: bool = False
    message: str


class HealthResponse(BaseModel):
    """Response schema for the liveness check."""

    status: str = Field(..., description="Always OK while the process serves requests")
    timestamp: str = Field(..., description="Server time (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Response schema for the readiness check."""

    status: str = Field(..., description="Overall health status (healthy/unhealthy)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual service checks")
