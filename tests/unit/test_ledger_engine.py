"""Unit tests for the ledger transaction engine"""

import pytest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import MagicMock, patch
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from emi_ledger.domain.exceptions import AccountNotFoundError, InvalidArgumentError, StorageError
from emi_ledger.domain.models import PaymentStatus
from emi_ledger.infrastructure.database.repositories import AccountRepository
from emi_ledger.infrastructure.database.session import Database
from emi_ledger.services.ledger import LedgerEngine
from emi_ledger.services.queries import LedgerQueries


def locked_error() -> OperationalError:
    return OperationalError("UPDATE customers", {}, Exception("database is locked"))


@pytest.fixture
def engine(database: Database) -> LedgerEngine:
    return LedgerEngine(database, max_retries=3, backoff_base=0.0, sleep=MagicMock())


def test_record_payment_reduces_due_and_allows_credit_surplus(engine, make_customer, due_of):
    """Test 5000 due, pay 2000 then 4000 -> 3000 then -1000"""
    make_customer("ACC100", "5000")

    first = engine.record_payment("ACC100", 2000)
    assert first.new_balance == Decimal("3000")
    assert first.payment.payment_amount == Decimal("2000")
    assert first.payment.status == PaymentStatus.SUCCESS
    assert first.payment.customer_account_number == "ACC100"
    assert first.payment.id is not None
    assert first.payment.payment_date.tzinfo is not None

    second = engine.record_payment("ACC100", 4000)
    assert second.new_balance == Decimal("-1000")
    assert due_of("ACC100") == Decimal("-1000")


def test_recorded_payment_is_visible_with_adjusted_due(engine, database, make_customer, due_of):
    """Test a successful payment shows up in history and the due moved by the amount"""
    make_customer("ACC100", "5000")

    receipt = engine.record_payment("ACC100", "1250.75")

    history = LedgerQueries(database).list_payments_for_account("ACC100")
    assert [p.id for p in history] == [receipt.payment.id]
    assert due_of("ACC100") == Decimal("3749.25")


def test_account_number_is_stripped(engine, make_customer, due_of):
    make_customer("ACC100", "100")
    receipt = engine.record_payment("  ACC100 ", 40)
    assert receipt.payment.customer_account_number == "ACC100"
    assert due_of("ACC100") == Decimal("60")


def test_unknown_account_not_found_and_no_rows(engine, make_customer, due_of, payment_count):
    """Test unknown account -> AccountNotFoundError, ledger untouched"""
    make_customer("ACC100", "5000")

    with pytest.raises(AccountNotFoundError) as exc_info:
        engine.record_payment("UNKNOWN", 100)

    assert exc_info.value.account_number == "UNKNOWN"
    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")


@pytest.mark.parametrize(
    "account_number, amount",
    [
        ("", 100),
        ("   ", 100),
        (None, 100),
        ("ACC100", None),
        ("ACC100", ""),
        ("ACC100", 0),
        ("ACC100", -50),
        ("ACC100", "abc"),
        ("ACC100", "10.005"),
    ],
)
def test_invalid_input_never_opens_a_session(account_number, amount):
    """Test validation failures happen before any transaction starts"""
    database = MagicMock(spec=Database)
    engine = LedgerEngine(database)

    with pytest.raises(InvalidArgumentError):
        engine.record_payment(account_number, amount)

    database.session.assert_not_called()


def test_invalid_input_leaves_store_unchanged(engine, make_customer, due_of, payment_count):
    make_customer("ACC100", "5000")

    with pytest.raises(InvalidArgumentError):
        engine.record_payment("", 100)

    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")


def test_storage_error_mid_transaction_rolls_back_payment(engine, make_customer, due_of, payment_count):
    """Test failure after the payment insert leaves neither payment nor due change"""
    make_customer("ACC100", "5000")

    with patch.object(AccountRepository, "apply_payment", side_effect=SQLAlchemyError("disk I/O error")):
        with pytest.raises(StorageError):
            engine.record_payment("ACC100", 2000)

    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")
    engine._sleep.assert_not_called()


def test_transient_conflict_is_retried(engine, make_customer, due_of, payment_count):
    """Test a lock conflict reruns the whole transaction exactly once more"""
    make_customer("ACC100", "5000")
    original = AccountRepository.apply_payment
    calls = []

    def flaky(self, account_number, amount):
        calls.append(account_number)
        if len(calls) == 1:
            raise locked_error()
        return original(self, account_number, amount)

    with patch.object(AccountRepository, "apply_payment", flaky):
        receipt = engine.record_payment("ACC100", 2000)

    assert len(calls) == 2
    assert receipt.new_balance == Decimal("3000")
    # First attempt's insert was rolled back
    assert payment_count() == 1
    assert due_of("ACC100") == Decimal("3000")
    engine._sleep.assert_called_once_with(0.0)


def test_retries_exhausted_surfaces_storage_error(engine, make_customer, due_of, payment_count):
    make_customer("ACC100", "5000")

    with patch.object(AccountRepository, "apply_payment", side_effect=locked_error()):
        with pytest.raises(StorageError) as exc_info:
            engine.record_payment("ACC100", 2000)

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert engine._sleep.call_count == 2
    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")


def test_backoff_doubles_between_attempts(database, make_customer):
    make_customer("ACC100", "5000")
    sleep = MagicMock()
    engine = LedgerEngine(database, max_retries=4, backoff_base=0.5, sleep=sleep)

    with patch.object(AccountRepository, "apply_payment", side_effect=locked_error()):
        with pytest.raises(StorageError):
            engine.record_payment("ACC100", 10)

    assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0, 2.0]


def test_commit_failure_is_not_retried(engine, make_customer, due_of, payment_count):
    """Test a failed commit surfaces StorageError without rerunning the transaction"""
    make_customer("ACC100", "5000")

    with patch.object(Session, "commit", side_effect=locked_error()):
        with pytest.raises(StorageError):
            engine.record_payment("ACC100", 2000)

    engine._sleep.assert_not_called()
    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")


class Cancelled(BaseException):
    """Stands in for a cancellation raised into the worker"""


def test_cancellation_mid_transaction_leaves_no_trace(engine, make_customer, due_of, payment_count):
    make_customer("ACC100", "5000")

    with patch.object(AccountRepository, "apply_payment", side_effect=Cancelled()):
        with pytest.raises(Cancelled):
            engine.record_payment("ACC100", 2000)

    assert payment_count() == 0
    assert due_of("ACC100") == Decimal("5000")


def test_concurrent_payments_same_account_lose_no_updates(database, make_customer, due_of, payment_count):
    """Test N concurrent payments against one account subtract exactly their sum"""
    make_customer("ACC100", "10000")
    make_customer("ACC200", "500")
    engine = LedgerEngine(database, max_retries=100, backoff_base=0.001)

    amounts = [Decimal(n) + Decimal("0.25") for n in range(1, 25)]
    jobs = [("ACC100", a) for a in amounts] + [("ACC200", Decimal("10"))] * 6

    with ThreadPoolExecutor(max_workers=6) as pool:
        receipts = list(pool.map(lambda job: engine.record_payment(*job), jobs))

    assert len(receipts) == len(jobs)
    assert due_of("ACC100") == Decimal("10000") - sum(amounts)
    assert due_of("ACC200") == Decimal("440")
    assert payment_count() == len(jobs)

    # Every intermediate balance was observed by exactly one payment
    acc100_balances = sorted(r.new_balance for r in receipts if r.payment.customer_account_number == "ACC100")
    assert len(set(acc100_balances)) == len(amounts)


def test_engine_only_produces_success_status():
    assert [status.value for status in PaymentStatus] == ["SUCCESS"]
