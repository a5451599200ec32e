"""Read accessors for accounts and payment history"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from emi_ledger.domain.exceptions import StorageError
from emi_ledger.domain.models import Account, Payment
from emi_ledger.infrastructure.database.repositories import (
    AccountRepository,
    PaymentRepository,
    to_account,
    to_payment,
)
from emi_ledger.infrastructure.database.session import Database, session_scope


class LedgerQueries:
    """Read-only view over the account and payment stores"""

    def __init__(self, database: Database):
        self.database = database

    def list_accounts(self) -> List[Account]:
        try:
            with session_scope(self.database) as db:
                return [to_account(row) for row in AccountRepository(db).list_accounts()]
        except SQLAlchemyError as e:
            logging.error(f"Account list query failed: {e}")
            raise StorageError("Accounts unavailable") from e

    def list_payments(self) -> List[Payment]:
        """All payments, newest first"""
        try:
            with session_scope(self.database) as db:
                return [to_payment(row) for row in PaymentRepository(db).list_payments()]
        except SQLAlchemyError as e:
            logging.error(f"Payment list query failed: {e}")
            raise StorageError("Payments unavailable") from e

    def list_payments_for_account(self, account_number: str) -> List[Payment]:
        """Payments for one account, newest first; empty when the account is unknown"""
        try:
            with session_scope(self.database) as db:
                rows = PaymentRepository(db).list_payments_for_account(account_number)
                return [to_payment(row) for row in rows]
        except SQLAlchemyError as e:
            logging.error(f"Payment history query failed: {e}", extra={"account_number": account_number})
            raise StorageError("Payments unavailable") from e
