"""Demo loan accounts and payment history for local environments."""
from datetime import date, datetime
from decimal import Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from emi_collection.database.models import Customer, Payment, PaymentStatus

logger = structlog.get_logger(__name__)

SEED_CUSTOMERS = [
    # account_number, customer_name, issue_date, interest_rate, tenure, emi_due, total_loan_amount
    ("ACC001", "Alen", date(2023, 1, 15), "8.50", 24, "5000.00", "100000.00"),
    ("ACC002", "Sachin", date(2023, 3, 20), "9.00", 36, "3500.00", "120000.00"),
    ("ACC003", "Sharma", date(2023, 6, 10), "7.75", 48, "2800.00", "150000.00"),
    ("ACC004", "Aswin", date(2023, 8, 5), "8.25", 60, "4200.00", "200000.00"),
    ("ACC005", "Steve", date(2023, 10, 12), "9.50", 24, "6000.00", "80000.00"),
]

SEED_PAYMENTS = [
    # account_number, payment_date, payment_amount
    ("ACC001", datetime(2024, 1, 15), "5000.00"),
    ("ACC001", datetime(2024, 2, 15), "5000.00"),
    ("ACC002", datetime(2024, 1, 20), "3500.00"),
    ("ACC003", datetime(2024, 1, 10), "2800.00"),
    ("ACC004", datetime(2024, 2, 5), "4200.00"),
]


async def seed_demo_data(db: AsyncSession) -> int:
    """
    Insert the demo customers and their payment history.

    Does nothing when the customers table already holds rows.

    Args:
        db: Database session

    Returns:
        int: Number of customers inserted
    """
    existing = await db.scalar(select(func.count()).select_from(Customer))
    if existing:
        logger.info("seed_skipped", existing_customers=existing)
        return 0

    customers = {}
    for account_number, name, issued, rate, tenure, due, total in SEED_CUSTOMERS:
        customer = Customer(
            account_number=account_number,
            customer_name=name,
            issue_date=issued,
            interest_rate=Decimal(rate),
            tenure=tenure,
            emi_due=Decimal(due),
            total_loan_amount=Decimal(total),
        )
        db.add(customer)
        customers[account_number] = customer
    await db.flush()

    for account_number, paid_on, amount in SEED_PAYMENTS:
        db.add(
            Payment(
                customer_id=customers[account_number].id,
                account_number=account_number,
                payment_date=paid_on,
                payment_amount=Decimal(amount),
                status=PaymentStatus.COMPLETED,
            )
        )
    await db.commit()

    logger.info("seed_completed", customers=len(customers), payments=len(SEED_PAYMENTS))
    return len(customers)
