"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request

from emi_ledger.config import Settings
from emi_ledger.infrastructure.database.session import Database, get_database
from emi_ledger.services.analytics import AnalyticsService
from emi_ledger.services.ledger import LedgerEngine
from emi_ledger.services.queries import LedgerQueries


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger_engine(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> LedgerEngine:
    """Provide the payment transaction engine"""
    return LedgerEngine(
        database,
        max_retries=settings.transaction_max_retries,
        backoff_base=settings.transaction_backoff_base,
    )


def get_ledger_queries(database: Database = Depends(get_database)) -> LedgerQueries:
    return LedgerQueries(database)


def get_analytics_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(database, timezone_name=settings.business_timezone)
