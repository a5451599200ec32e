"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

from emi_ledger.domain.models import PaymentStatus


class AccountSchema(BaseModel):
    """Customer account as listed to clients"""

    model_config = ConfigDict(from_attributes=True)

    account_number: str
    customer_name: Optional[str] = None
    emi_due: Decimal
    created_at: Optional[datetime] = None


class PaymentRequest(BaseModel):
    """
    Request body for POST /v1/payments.

    Fields accept any JSON value so missing or malformed input reaches the ledger
    engine and is reported as a 400 rather than a schema error.
    """

    account_number: Optional[Any] = Field(None, description="Customer account number")
    amount: Optional[Any] = Field(None, description="Amount received; positive, at most 2 decimals")


class PaymentSchema(BaseModel):
    """Single committed payment"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_account_number: str
    payment_amount: Decimal
    status: PaymentStatus
    payment_date: datetime


class PaymentResponse(BaseModel):
    """Response for POST /v1/payments"""

    message: str
    payment: PaymentSchema
    new_balance: Decimal


class AnalyticsResponse(BaseModel):
    """Response for GET /v1/analytics"""

    model_config = ConfigDict(from_attributes=True)

    collected_today: Decimal
    pending_total: Decimal
