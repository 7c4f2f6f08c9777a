"""
API routes for customers, payments and monitoring.
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.ext.asyncio import AsyncSession

from emi_collection.core.customers import CustomerService
from emi_collection.core.exceptions import EMICollectionError, StoreError
from emi_collection.core.pagination import PageRequest
from emi_collection.core.payment_processor import PaymentProcessor
from emi_collection.database.connection import get_db
from emi_collection.monitoring.health import HealthCheck

from .schemas import (
    CreatePaymentRequest,
    CustomerDetail,
    CustomerListResponse,
    CustomerResponse,
    ErrorResponse,
    HealthResponse,
    PaymentHistoryResponse,
    PaymentListResponse,
    PaymentResponse,
    ReadinessResponse,
)

logger = structlog.get_logger(__name__)

# Create routers
customer_router = APIRouter(prefix="/customers", tags=["customers"])
payment_router = APIRouter(prefix="/payments", tags=["payments"])
monitoring_router = APIRouter(tags=["monitoring"])

# Initialize services
customer_service = CustomerService()
payment_processor = PaymentProcessor()

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    500: {"model": ErrorResponse, "description": "Store or unexpected failure"},
}


def page_request_from_query(
    request: Request,
    page: Optional[str] = Query(default=None, description="Page number (default 1)"),
    limit: Optional[str] = Query(default=None, description="Page size (default 10)"),
) -> PageRequest:
    """Dependency turning raw ``page``/``limit`` query values into a PageRequest."""
    settings = request.app.state.settings
    return PageRequest.from_query(
        page,
        limit,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


@customer_router.get(
    "",
    response_model=CustomerListResponse,
    summary="List customers",
    description="Paginated customer loan records ordered by account number",
    responses=ERROR_RESPONSES,
)
async def list_customers(
    page_request: PageRequest = Depends(page_request_from_query),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Retrieve customer loan details, one page at a time."""
    try:
        rows, pagination = await customer_service.list_customers(db, page_request)
        return {"success": True, "data": rows, "pagination": pagination.to_dict()}

    except EMICollectionError:
        raise
    except Exception as e:
        logger.error("api_list_customers_unexpected_error", error=str(e))
        raise StoreError(str(e), user_message="Failed to fetch customer data") from e


@customer_router.get(
    "/{account_number}",
    response_model=CustomerResponse,
    summary="Get customer",
    description="Full customer record for one account number",
    responses={404: {"model": ErrorResponse, "description": "Customer not found"}, **ERROR_RESPONSES},
)
async def get_customer(
    account_number: str,
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get specific customer details."""
    try:
        customer = await customer_service.get_customer(db, account_number)
        return {"success": True, "data": CustomerDetail.model_validate(customer)}

    except EMICollectionError:
        raise
    except Exception as e:
        logger.error(
            "api_get_customer_unexpected_error", account_number=account_number, error=str(e)
        )
        raise StoreError(str(e), user_message="Failed to fetch customer data") from e


@payment_router.post(
    "",
    response_model=PaymentResponse,
    summary="Submit a payment",
    description="Record an EMI payment and reduce the account's due balance",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid payment request"},
        404: {"model": ErrorResponse, "description": "Customer account not found"},
        **ERROR_RESPONSES,
    },
)
async def create_payment(
    request: CreatePaymentRequest,
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Make a payment.

    The payment row and the balance update commit together or not at all.
    """
    try:
        logger.info(
            "api_create_payment_request",
            account_number=request.account_number,
            payment_amount=str(request.payment_amount),
        )

        result = await payment_processor.submit_payment(
            account_number=request.account_number,
            payment_amount=request.payment_amount,
            db=db,
        )

        logger.info(
            "api_create_payment_success",
            payment_id=result.payment_id,
            remaining_due=str(result.remaining_due),
        )

        return {
            "success": True,
            "message": "Payment processed successfully",
            "data": result.to_dict(),
        }

    except EMICollectionError:
        raise
    except Exception as e:
        logger.error("api_create_payment_unexpected_error", error=str(e))
        raise StoreError(str(e), user_message="Failed to process payment") from e


@payment_router.get(
    "",
    response_model=PaymentListResponse,
    summary="List payments",
    description="All payments, newest first, with customer names",
    responses=ERROR_RESPONSES,
)
async def list_payments(
    page_request: PageRequest = Depends(page_request_from_query),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get all payment history (for all customers) with pagination."""
    try:
        rows, pagination = await payment_processor.list_payments(db, page_request)
        return {"success": True, "data": rows, "pagination": pagination.to_dict()}

    except EMICollectionError:
        raise
    except Exception as e:
        logger.error("api_list_payments_unexpected_error", error=str(e))
        raise StoreError(str(e), user_message="Failed to fetch payment history") from e


@payment_router.get(
    "/{account_number}",
    response_model=PaymentHistoryResponse,
    summary="Payment history",
    description="Payments for one account, newest first; empty for unknown accounts",
    responses=ERROR_RESPONSES,
)
async def get_payment_history(
    account_number: str,
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get payment history for an account."""
    try:
        rows = await payment_processor.get_payment_history(db, account_number)
        return {"success": True, "data": rows}

    except EMICollectionError:
        raise
    except Exception as e:
        logger.error(
            "api_payment_history_unexpected_error", account_number=account_number, error=str(e)
        )
        raise StoreError(str(e), user_message="Failed to fetch payment history") from e


@monitoring_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Liveness check; does not touch the database",
)
async def health() -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return HealthCheck.liveness()


@monitoring_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks that the database answers through the pool",
    responses={503: {"model": ReadinessResponse, "description": "Dependency unavailable"}},
)
async def readiness(request: Request) -> Any:
    """Readiness probe endpoint."""
    result = await HealthCheck(request.app.state.database).readiness()
    if result["status"] != "healthy":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=result)
    return result


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
