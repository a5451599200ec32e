"""Collection analytics for the dashboard"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from emi_ledger.domain.exceptions import StorageError
from emi_ledger.domain.models import CollectionSummary
from emi_ledger.infrastructure.database.repositories import AccountRepository, PaymentRepository
from emi_ledger.infrastructure.database.session import Database, session_scope
from emi_ledger.utils.date_utils import day_bounds_utc, resolve_timezone, today_in


class AnalyticsService:
    """
    Read-only aggregates over the ledger and account stores.

    collected_today and pending_total are read by two independent queries, not
    from one snapshot. Under concurrent writes they can disagree by the
    payments committed in between; they are dashboard figures, not a
    reconciliation.
    """

    def __init__(self, database: Database, timezone_name: str = ""):
        self.database = database
        self.tz = resolve_timezone(timezone_name)

    def get_analytics(self) -> CollectionSummary:
        return CollectionSummary(
            collected_today=self.collected_on(today_in(self.tz)),
            pending_total=self.pending_total(),
        )

    def collected_on(self, day: date) -> Decimal:
        """Sum of payments dated on day in the business timezone"""
        start, end = day_bounds_utc(day, self.tz)
        try:
            with session_scope(self.database) as db:
                return PaymentRepository(db).total_collected_between(start, end)
        except SQLAlchemyError as e:
            logging.error(f"Collection total query failed: {e}")
            raise StorageError("Analytics unavailable") from e

    def pending_total(self) -> Decimal:
        try:
            with session_scope(self.database) as db:
                return AccountRepository(db).total_due()
        except SQLAlchemyError as e:
            logging.error(f"Pending dues query failed: {e}")
            raise StorageError("Analytics unavailable") from e
