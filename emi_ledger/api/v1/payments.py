"""Payment endpoints - record a payment and read payment history"""

import time
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request

from emi_ledger.api.v1.schemas import PaymentRequest, PaymentResponse, PaymentSchema
from emi_ledger.api.dependencies import get_ledger_engine, get_ledger_queries, get_request_id
from emi_ledger.domain.exceptions import AccountNotFoundError, InvalidArgumentError, StorageError
from emi_ledger.infrastructure.observability.logging import log_payment
from emi_ledger.infrastructure.observability.metrics import record_payment
from emi_ledger.services.ledger import LedgerEngine
from emi_ledger.services.queries import LedgerQueries

router = APIRouter()

PAYMENT_ACCEPTED_MESSAGE = "Payment Processed & Balance Updated"


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request_body: PaymentRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_ledger_engine),
):
    """
    Record a payment and reduce the customer's EMI due.

    Flow:
    1. Validate account number and amount (400 before touching the database)
    2. Lock the customer row, insert the payment, decrement the due
    3. Commit both changes together
    4. Return the payment and the new balance (negative = credit surplus)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    def finish(outcome: str, **fields) -> None:
        duration_ms = (time.time() - start_time) * 1000
        record_payment(outcome, fields.get("amount"))
        log_payment(request_id, request_body.account_number, outcome, duration_ms, **fields)

    try:
        receipt = engine.record_payment(request_body.account_number, request_body.amount)

    except InvalidArgumentError as e:
        finish("invalid")
        raise HTTPException(status_code=400, detail=str(e))

    except AccountNotFoundError:
        finish("not_found")
        raise HTTPException(status_code=404, detail="Customer Account not found")

    except StorageError as e:
        finish("storage_error")
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Database unavailable, please retry")

    finish(
        "success",
        amount=receipt.payment.payment_amount,
        new_balance=receipt.new_balance,
    )
    return PaymentResponse(
        message=PAYMENT_ACCEPTED_MESSAGE,
        payment=PaymentSchema.model_validate(receipt.payment),
        new_balance=receipt.new_balance,
    )


@router.get("/payments", response_model=List[PaymentSchema])
def list_payments(request: Request, queries: LedgerQueries = Depends(get_ledger_queries)):
    """Full payment history, newest first"""
    try:
        return queries.list_payments()
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/payments/{account_number}", response_model=List[PaymentSchema])
def list_account_payments(
    account_number: str,
    request: Request,
    queries: LedgerQueries = Depends(get_ledger_queries),
):
    """
    Payment history for one account, newest first.

    Returns an empty list when the account has no payments or does not exist.
    """
    try:
        return queries.list_payments_for_account(account_number)
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Database unavailable")
