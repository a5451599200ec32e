"""Domain models - pure Python dataclasses representing ledger entities"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


class PaymentStatus(str, enum.Enum):
    """Outcome tag stored on a payment row"""

    SUCCESS = "SUCCESS"


@dataclass
class Account:
    """Customer account with its outstanding EMI due"""

    account_number: str
    emi_due: Decimal  # Negative means the customer has a credit surplus
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Payment:
    """Committed payment record"""

    id: uuid.UUID
    customer_account_number: str
    payment_amount: Decimal
    status: PaymentStatus
    payment_date: datetime


@dataclass
class PaymentReceipt:
    """Result of recording a payment"""

    payment: Payment
    new_balance: Decimal


@dataclass
class CollectionSummary:
    """
    Dashboard figures.

    The two totals come from separate queries and are not a joint snapshot:
    a payment committed between them may be reflected in one but not the other.
    """

    collected_today: Decimal
    pending_total: Decimal
