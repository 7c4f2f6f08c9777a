"""SQLAlchemy database models for customer loans and EMI payments."""
import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class PaymentStatus(str, enum.Enum):
    """Lifecycle states a payment row can carry."""

    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class Customer(Base):
    """
    Customer loan records table.

    One row per loan account. ``emi_due`` is the only column this service
    mutates, and only through the payment transaction.
    """

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    tenure: Mapped[int] = mapped_column(Integer, nullable=False, comment="Tenure in months")
    emi_due: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0"
    )
    total_loan_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_customers_account_number", "account_number"),)

    def __repr__(self) -> str:
        """String representation of Customer."""
        return (
            f"<Customer(id={self.id}, account_number={self.account_number}, "
            f"emi_due={self.emi_due})>"
        )


class Payment(Base):
    """
    EMI payment records table.

    Rows are written once by the payment transaction and never updated.
    ``account_number`` is a denormalized copy of the owning customer's key.
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(
            PaymentStatus,
            name="payment_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=PaymentStatus.COMPLETED,
        server_default=PaymentStatus.COMPLETED.value,
    )
    created_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())

    customer: Mapped[Customer] = relationship(back_populates="payments")

    __table_args__ = (
        Index("idx_payments_customer_id", "customer_id"),
        Index("idx_payments_account_number", "account_number"),
        Index("idx_payments_payment_date", "payment_date"),
    )

    def __repr__(self) -> str:
        """String representation of Payment."""
        return (
            f"<Payment(id={self.id}, account_number={self.account_number}, "
            f"amount={self.payment_amount}, status={self.status})>"
        )
