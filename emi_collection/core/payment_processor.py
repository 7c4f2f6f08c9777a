"""
EMI payment processing.

Submitting a payment runs as one database transaction:
1. Validate input (no store access)
2. Lock the customer row (SELECT ... FOR UPDATE)
3. Insert the payment record
4. Reduce the customer's due balance, clamped at zero
5. Commit, or roll back everything on failure

Concurrent payments on the same account serialize on the row lock.
Payments on different accounts never wait for each other.
"""
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from emi_collection.core.exceptions import NotFoundError, StoreError, ValidationError
from emi_collection.core.pagination import PageRequest, Pagination
from emi_collection.database.models import Customer, Payment, PaymentStatus
from emi_collection.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
# payments.payment_amount is DECIMAL(10, 2)
MAX_PAYMENT_AMOUNT = Decimal("99999999.99")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a committed payment."""

    payment_id: int
    account_number: str
    payment_amount: Decimal
    remaining_due: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PaymentProcessor:
    """
    Payment transaction handler and payment history queries.

    Holds no per-request state; one instance serves every request.
    """

    @staticmethod
    def _validate_payment_request(account_number: Any, payment_amount: Any) -> Tuple[str, Decimal]:
        """
        Validate payment request parameters.

        Args:
            account_number: Customer account number
            payment_amount: Amount to apply, any numeric or numeric string

        Returns:
            Tuple of the stripped account number and the amount in cents

        Raises:
            ValidationError: If validation fails
        """
        if isinstance(account_number, str):
            account_number = account_number.strip()
        if not account_number or payment_amount is None or payment_amount == "":
            raise ValidationError("Account number and payment amount are required")

        if not isinstance(account_number, str):
            raise ValidationError("Account number must be a string")

        if isinstance(payment_amount, bool):
            raise ValidationError("Payment amount must be a number")
        try:
            amount = Decimal(str(payment_amount).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError("Payment amount must be a number")
        if not amount.is_finite():
            raise ValidationError("Payment amount must be a number")

        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        if amount > MAX_PAYMENT_AMOUNT:
            raise ValidationError("Payment amount exceeds the maximum allowed")

        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        return account_number, amount

    @staticmethod
    def apply_payment(current_due: Decimal, payment_amount: Decimal) -> Decimal:
        """
        Balance left after a payment.

        Overpayment is absorbed: the balance stops at zero and no credit is kept.
        """
        return max(ZERO, Decimal(current_due) - payment_amount).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )

    async def submit_payment(
        self,
        account_number: Any,
        payment_amount: Any,
        db: AsyncSession,
    ) -> PaymentResult:
        """
        Record a payment and reduce the account's due balance atomically.

        Args:
            account_number: Customer account number
            payment_amount: Amount paid
            db: Database session with no transaction in progress

        Returns:
            PaymentResult: The committed payment and the remaining due

        Raises:
            ValidationError: If input validation fails (the store is not touched)
            NotFoundError: If the account does not exist (rolled back)
            StoreError: If any database operation fails (rolled back)
        """
        start_time = time.perf_counter()

        try:
            account_number, amount = self._validate_payment_request(
                account_number, payment_amount
            )
        except ValidationError as e:
            logger.warning("payment_validation_failed", error=e.message)
            metrics.record_payment_request("validation_error")
            raise

        logger.info(
            "payment_submission_started",
            account_number=account_number,
            payment_amount=str(amount),
        )

        try:
            # Row lock held until commit/rollback; refresh any identity-mapped copy.
            stmt = (
                select(Customer)
                .where(Customer.account_number == account_number)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await db.execute(stmt)
            customer = result.scalar_one_or_none()

            if customer is None:
                await db.rollback()
                logger.info("payment_customer_not_found", account_number=account_number)
                metrics.record_payment_request("not_found")
                raise NotFoundError("Customer account not found", account_number=account_number)

            payment = Payment(
                customer_id=customer.id,
                account_number=account_number,
                payment_date=_utcnow(),
                payment_amount=amount,
                status=PaymentStatus.COMPLETED,
            )
            db.add(payment)
            await db.flush()  # Get the payment ID

            previous_due = customer.emi_due
            new_due = self.apply_payment(previous_due, amount)
            customer.emi_due = new_due
            await db.flush()

            await db.commit()

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "payment_store_error",
                account_number=account_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            metrics.record_payment_request("store_error")
            raise StoreError(str(e), user_message="Failed to process payment") from e

        duration = time.perf_counter() - start_time
        metrics.record_payment_request("completed")
        metrics.record_payment_duration(duration)
        metrics.record_payment_amount(float(amount))

        logger.info(
            "payment_completed",
            payment_id=payment.id,
            account_number=account_number,
            previous_due=str(previous_due),
            remaining_due=str(new_due),
            duration_seconds=duration,
        )

        return PaymentResult(
            payment_id=payment.id,
            account_number=account_number,
            payment_amount=amount,
            remaining_due=new_due,
        )

    async def list_payments(
        self, db: AsyncSession, page_request: PageRequest
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List all payments, newest first, with the customer's name.

        Args:
            db: Database session
            page_request: Page number and size

        Returns:
            Tuple of the page's rows and its pagination metadata

        Raises:
            StoreError: If a query fails
        """
        try:
            total = await db.scalar(select(func.count()).select_from(Payment)) or 0
            stmt = (
                select(
                    Payment.id,
                    Payment.payment_date,
                    Payment.payment_amount,
                    Payment.status,
                    Payment.account_number,
                    Customer.customer_name,
                )
                .join(Customer, Payment.customer_id == Customer.id)
                .order_by(Payment.payment_date.desc(), Payment.id.desc())
                .limit(page_request.limit)
                .offset(page_request.offset)
            )
            result = await db.execute(stmt)
            rows = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error("list_payments_failed", error=str(e))
            metrics.record_read("list_payments", "store_error")
            raise StoreError(str(e), user_message="Failed to fetch payment history") from e

        metrics.record_read("list_payments", "ok")
        return rows, Pagination.for_window(page_request, total, len(rows))

    async def get_payment_history(
        self, db: AsyncSession, account_number: str
    ) -> List[Dict[str, Any]]:
        """
        Payments for one account, newest first.

        The account itself is not looked up: an unknown account number
        simply has no payments.

        Args:
            db: Database session
            account_number: Customer account number

        Returns:
            List of payment rows (possibly empty)

        Raises:
            StoreError: If the query fails
        """
        try:
            stmt = (
                select(
                    Payment.id,
                    Payment.payment_date,
                    Payment.payment_amount,
                    Payment.status,
                    Customer.customer_name,
                )
                .join(Customer, Payment.customer_id == Customer.id)
                .where(Payment.account_number == account_number)
                .order_by(Payment.payment_date.desc(), Payment.id.desc())
            )
            result = await db.execute(stmt)
            rows = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error("payment_history_failed", account_number=account_number, error=str(e))
            metrics.record_read("payment_history", "store_error")
            raise StoreError(str(e), user_message="Failed to fetch payment history") from e

        metrics.record_read("payment_history", "ok")
        return rows
