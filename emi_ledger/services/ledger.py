"""
Ledger transaction engine - records a payment and adjusts the account due atomically.

One call to record_payment runs one database transaction:
1. Lock the customer row (SELECT ... FOR UPDATE)
2. Insert the SUCCESS payment row
3. Decrement emi_due by the amount inside the UPDATE and read the new value back
4. Commit

Either both the payment row and the due adjustment become visible, or neither does.
"""

import logging
import time
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from emi_ledger.domain.amounts import normalize_account_number, parse_payment_amount, to_money
from emi_ledger.domain.exceptions import AccountNotFoundError, StorageError
from emi_ledger.domain.models import PaymentReceipt, PaymentStatus
from emi_ledger.infrastructure.database.repositories import AccountRepository, PaymentRepository, to_payment
from emi_ledger.infrastructure.database.session import Database
from emi_ledger.infrastructure.observability.metrics import transaction_retry_counter


class _RetryableConflict(Exception):
    """Transient failure before commit; the transaction was rolled back and may be rerun"""


class LedgerEngine:
    """Write side of the ledger"""

    def __init__(
        self,
        database: Database,
        max_retries: int = 3,
        backoff_base: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.database = database
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self._sleep = sleep

    def record_payment(self, account_number: Any, amount: Any) -> PaymentReceipt:
        """
        Record a SUCCESS payment against an account and reduce its due.

        The due may go negative, which represents a credit surplus.

        Raises:
            InvalidArgumentError: Missing account number, or amount missing, non-numeric,
                non-positive or finer than cents. Raised before any transaction starts.
            AccountNotFoundError: No customer with this account number
            StorageError: Database failure; the transaction was rolled back
        """
        account_number = normalize_account_number(account_number)
        amount = parse_payment_amount(amount)

        attempt = 0
        while True:
            attempt += 1
            try:
                return self._record_once(account_number, amount)
            except _RetryableConflict as e:
                if attempt >= self.max_retries:
                    logging.error(
                        f"Payment transaction failed after {attempt} attempts: {e.__cause__}",
                        extra={"account_number": account_number},
                    )
                    raise StorageError("Payment could not be recorded, please retry") from e.__cause__

                transaction_retry_counter.inc()
                # Exponential backoff: base, 2*base, 4*base, ...
                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(
                    f"Transient conflict recording payment, retrying in {backoff}s: {e.__cause__}",
                    extra={"account_number": account_number, "attempt": attempt},
                )
                self._sleep(backoff)

    def _record_once(self, account_number: str, amount: Decimal) -> PaymentReceipt:
        db = self.database.session()
        try:
            try:
                receipt = self._apply(db, account_number, amount)
            except OperationalError as e:
                db.rollback()
                raise _RetryableConflict(str(e)) from e
            except SQLAlchemyError as e:
                db.rollback()
                logging.error(f"Payment transaction error: {e}", extra={"account_number": account_number})
                raise StorageError("Payment could not be recorded") from e
            except BaseException:
                # Not found, or the caller was cancelled mid-transaction
                db.rollback()
                raise

            try:
                db.commit()
            except SQLAlchemyError as e:
                # Outcome of a failed commit is ambiguous, so it is never retried
                db.rollback()
                logging.error(f"Payment commit failed: {e}", extra={"account_number": account_number})
                raise StorageError("Payment could not be committed") from e

            return receipt
        finally:
            db.close()

    def _apply(self, db: Session, account_number: str, amount: Decimal) -> PaymentReceipt:
        accounts = AccountRepository(db)
        payments = PaymentRepository(db)

        customer = accounts.get_for_update(account_number)
        if customer is None:
            raise AccountNotFoundError(account_number)

        current_due = to_money(customer.emi_due)
        db_payment = payments.create_payment(account_number, amount, PaymentStatus.SUCCESS)
        new_due = accounts.apply_payment(account_number, amount)

        logging.debug(
            "Payment applied",
            extra={
                "account_number": account_number,
                "previous_due": str(current_due),
                "new_due": str(new_due),
            },
        )
        return PaymentReceipt(payment=to_payment(db_payment), new_balance=new_due)
