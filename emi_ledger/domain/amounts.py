"""Validation and normalization of payment input"""

from decimal import Decimal, InvalidOperation
from typing import Any

from emi_ledger.domain.exceptions import InvalidArgumentError

CENTS = Decimal("0.01")

# Largest value a NUMERIC(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value: Any) -> Decimal:
    """Quantize a stored or computed amount to cents"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


def normalize_account_number(account_number: Any) -> str:
    """
    Strip and check the account number; raises InvalidArgumentError when missing.

    Integer account numbers are converted to text.
    """
    if isinstance(account_number, int) and not isinstance(account_number, bool):
        account_number = str(account_number)
    if not isinstance(account_number, str) or not account_number.strip():
        raise InvalidArgumentError("Please provide account number and amount")
    return account_number.strip()


def parse_payment_amount(amount: Any) -> Decimal:
    """
    Parse a payment amount into a positive Decimal with at most two fractional digits.

    Accepts int, Decimal, float and numeric strings. Rejects booleans, blanks,
    NaN/Infinity, zero, negatives and sub-cent precision.

    Raises:
        InvalidArgumentError: If the amount is missing or not a valid payment amount
    """
    if amount is None or isinstance(amount, bool):
        raise InvalidArgumentError("Please provide account number and amount")
    if isinstance(amount, str):
        amount = amount.strip()
        if not amount:
            raise InvalidArgumentError("Please provide account number and amount")

    try:
        # str() keeps floats at their shortest repr (0.1 -> "0.1")
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidArgumentError(f"Amount is not a number: {amount!r}")

    if not value.is_finite():
        raise InvalidArgumentError(f"Amount is not a number: {amount!r}")
    if value <= 0:
        raise InvalidArgumentError("Amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise InvalidArgumentError(f"Amount cannot exceed {MAX_AMOUNT}")
    if value != value.quantize(CENTS):
        raise InvalidArgumentError("Amount cannot have more than two decimal places")

    return value.quantize(CENTS)
