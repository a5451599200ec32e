"""Data access layer for customer accounts and payments"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from emi_ledger.infrastructure.database.models import Customer, Payment
from emi_ledger.domain import models as domain
from emi_ledger.domain.amounts import to_money
from emi_ledger.utils.date_utils import as_utc


def to_account(row: Customer) -> domain.Account:
    return domain.Account(
        account_number=row.account_number,
        emi_due=to_money(row.emi_due),
        customer_name=row.customer_name,
        created_at=as_utc(row.created_at) if row.created_at else None,
    )


def to_payment(row: Payment) -> domain.Payment:
    return domain.Payment(
        id=row.id,
        customer_account_number=row.customer_account_number,
        payment_amount=to_money(row.payment_amount),
        status=domain.PaymentStatus(row.status),
        payment_date=as_utc(row.payment_date),
    )


class AccountRepository:
    """Repository for customer accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_update(self, account_number: str) -> Optional[Customer]:
        """Fetch an account and lock its row until the transaction ends"""
        return (
            self.db.query(Customer)
            .filter(Customer.account_number == account_number)
            .with_for_update()
            .one_or_none()
        )

    def apply_payment(self, account_number: str, amount: Decimal) -> Decimal:
        """
        Decrement the account's due by amount and return the new due.

        The subtraction runs inside the UPDATE so it always applies to the
        latest committed value, even on backends that ignore FOR UPDATE.
        """
        self.db.query(Customer).filter(Customer.account_number == account_number).update(
            {Customer.emi_due: Customer.emi_due - amount},
            synchronize_session=False,
        )
        new_due = (
            self.db.query(Customer.emi_due)
            .filter(Customer.account_number == account_number)
            .scalar()
        )
        return to_money(new_due)

    def list_accounts(self) -> List[Customer]:
        return self.db.query(Customer).all()

    def total_due(self) -> Decimal:
        """Sum of emi_due over all accounts, zero when there are none"""
        total = self.db.query(func.coalesce(func.sum(Customer.emi_due), 0)).scalar()
        return to_money(total)


class PaymentRepository:
    """Repository for ledger payments"""

    def __init__(self, db: Session):
        self.db = db

    def create_payment(self, account_number: str, amount: Decimal, status: domain.PaymentStatus) -> Payment:
        """Insert a payment row; id and payment_date are assigned on flush"""
        db_payment = Payment(
            customer_account_number=account_number,
            payment_amount=amount,
            status=status.value,
        )
        self.db.add(db_payment)
        self.db.flush()  # Get ID and timestamp without committing
        return db_payment

    def list_payments(self) -> List[Payment]:
        """All payments, newest first"""
        return (
            self.db.query(Payment)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .all()
        )

    def list_payments_for_account(self, account_number: str) -> List[Payment]:
        """Payments for one account, newest first; empty for unknown accounts"""
        return (
            self.db.query(Payment)
            .filter(Payment.customer_account_number == account_number)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .all()
        )

    def total_collected_between(self, start: datetime, end: datetime) -> Decimal:
        """Sum of payment_amount with start <= payment_date < end"""
        total = (
            self.db.query(func.coalesce(func.sum(Payment.payment_amount), 0))
            .filter(Payment.payment_date >= start, Payment.payment_date < end)
            .scalar()
        )
        return to_money(total)
