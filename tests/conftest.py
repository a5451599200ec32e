"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Callable, Generator, Optional
from fastapi.testclient import TestClient
from emi_ledger.api.main import create_app
from emi_ledger.config import Settings
from emi_ledger.domain.models import PaymentStatus
from emi_ledger.infrastructure.database.models import Customer, Payment
from emi_ledger.infrastructure.database.session import Database


@pytest.fixture
def database(tmp_path) -> Generator[Database, None, None]:
    """Fresh SQLite database file with the ledger schema"""
    db = Database(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    ).open()
    db.create_schema()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_customer(database: Database) -> Callable[..., None]:
    """Provision a customer account directly in the store"""

    def _make(account_number: str, emi_due: str, customer_name: Optional[str] = None) -> None:
        with database.session() as db:
            db.add(Customer(account_number=account_number, emi_due=Decimal(emi_due), customer_name=customer_name))
            db.commit()

    return _make


@pytest.fixture
def make_payment(database: Database) -> Callable[..., None]:
    """Insert a payment row with an explicit date, bypassing the engine"""

    def _make(account_number: str, amount: str, payment_date: datetime) -> None:
        with database.session() as db:
            db.add(
                Payment(
                    customer_account_number=account_number,
                    payment_amount=Decimal(amount),
                    status=PaymentStatus.SUCCESS.value,
                    payment_date=payment_date,
                )
            )
            db.commit()

    return _make


@pytest.fixture
def due_of(database: Database) -> Callable[[str], Decimal]:
    """Read an account's persisted emi_due"""

    def _due(account_number: str) -> Decimal:
        with database.session() as db:
            return db.get(Customer, account_number).emi_due

    return _due


@pytest.fixture
def payment_count(database: Database) -> Callable[[], int]:
    def _count() -> int:
        with database.session() as db:
            return db.query(Payment).count()

    return _count


@pytest.fixture
def client(database: Database) -> Generator[TestClient, None, None]:
    """Create FastAPI test client bound to the test database"""
    settings = Settings(database_url=database.url, transaction_backoff_base=0.0)
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client
