"""GET /v1/analytics - Dashboard collection figures"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from emi_ledger.api.v1.schemas import AnalyticsResponse
from emi_ledger.api.dependencies import get_analytics_service, get_request_id
from emi_ledger.domain.exceptions import StorageError
from emi_ledger.services.analytics import AnalyticsService

router = APIRouter()


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(request: Request, analytics: AnalyticsService = Depends(get_analytics_service)):
    """
    Amount collected today and total pending dues.

    The two figures are read independently and are not guaranteed to come
    from the same point in time.
    """
    try:
        return analytics.get_analytics()
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Database unavailable")
