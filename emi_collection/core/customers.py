"""Read-only customer lookups."""
from typing import Any, Dict, List, Tuple

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from emi_collection.core.exceptions import NotFoundError, StoreError
from emi_collection.core.pagination import PageRequest, Pagination
from emi_collection.database.models import Customer
from emi_collection.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

# Listing projection; the surrogate id stays internal.
CUSTOMER_LIST_COLUMNS = (
    Customer.account_number,
    Customer.issue_date,
    Customer.interest_rate,
    Customer.tenure,
    Customer.emi_due,
    Customer.customer_name,
    Customer.total_loan_amount,
)


class CustomerService:
    """Customer loan record queries."""

    async def list_customers(
        self, db: AsyncSession, page_request: PageRequest
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List customers ordered by account number.

        Args:
            db: Database session
            page_request: Page number and size

        Returns:
            Tuple of the page's rows and its pagination metadata

        Raises:
            StoreError: If a query fails
        """
        try:
            total = await db.scalar(select(func.count()).select_from(Customer)) or 0
            stmt = (
                select(*CUSTOMER_LIST_COLUMNS)
                .order_by(Customer.account_number)
                .limit(page_request.limit)
                .offset(page_request.offset)
            )
            result = await db.execute(stmt)
            rows = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error("list_customers_failed", error=str(e))
            metrics.record_read("list_customers", "store_error")
            raise StoreError(str(e), user_message="Failed to fetch customer data") from e

        metrics.record_read("list_customers", "ok")
        return rows, Pagination.for_page(page_request, total)

    async def get_customer(self, db: AsyncSession, account_number: str) -> Customer:
        """
        Get the full customer row for an account.

        Args:
            db: Database session
            account_number: Customer account number

        Returns:
            Customer: The customer

        Raises:
            NotFoundError: If no customer has this account number
            StoreError: If the query fails
        """
        try:
            result = await db.execute(
                select(Customer).where(Customer.account_number == account_number)
            )
            customer = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("get_customer_failed", account_number=account_number, error=str(e))
            metrics.record_read("get_customer", "store_error")
            raise StoreError(str(e), user_message="Failed to fetch customer data") from e

        if customer is None:
            logger.info("customer_not_found", account_number=account_number)
            metrics.record_read("get_customer", "not_found")
            raise NotFoundError("Customer not found", account_number=account_number)

        metrics.record_read("get_customer", "ok")
        return customer
