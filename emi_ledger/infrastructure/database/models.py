"""SQLAlchemy ORM models matching db/schema.sql"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from emi_ledger.domain.models import PaymentStatus
from emi_ledger.utils.date_utils import utcnow

Base = declarative_base()


class Customer(Base):
    """Customer account carrying the outstanding EMI due"""

    __tablename__ = "customers"

    account_number = Column(Text, primary_key=True)
    customer_name = Column(Text, nullable=True)
    emi_due = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship("Payment", back_populates="customer")


class Payment(Base):
    """Append-only payment record"""

    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_account_date", "customer_account_number", "payment_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_account_number = Column(
        Text,
        ForeignKey("customers.account_number"),
        nullable=False,
    )
    payment_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False, default=PaymentStatus.SUCCESS.value)
    # Assigned by the service so ordering keeps sub-second precision on every backend
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    customer = relationship("Customer", back_populates="payments")
