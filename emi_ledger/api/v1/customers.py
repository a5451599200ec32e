"""GET /v1/customers - List customer accounts"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request

from emi_ledger.api.v1.schemas import AccountSchema
from emi_ledger.api.dependencies import get_ledger_queries, get_request_id
from emi_ledger.domain.exceptions import StorageError
from emi_ledger.services.queries import LedgerQueries

router = APIRouter()


@router.get("/customers", response_model=List[AccountSchema])
def list_customers(request: Request, queries: LedgerQueries = Depends(get_ledger_queries)):
    """All customer accounts with their current EMI due (unordered)"""
    try:
        return queries.list_accounts()
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Database unavailable")
