"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "emi-ledger", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "emi-ledger") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment(
    request_id: str,
    account_number: Optional[str],
    outcome: str,
    duration_ms: float,
    amount: Optional[Decimal] = None,
    new_balance: Optional[Decimal] = None,
) -> None:
    """Log structured payment outcome for analysis"""
    extra = {
        "request_id": request_id,
        "account_number": account_number,
        "step": "payment_complete",
        "outcome": outcome,
        "duration_ms": duration_ms,
    }
    if amount is not None:
        extra["amount"] = str(amount)
    if new_balance is not None:
        extra["new_balance"] = str(new_balance)

    level = logging.INFO if outcome == "success" else logging.WARNING
    logging.log(level, "Payment processed" if outcome == "success" else "Payment declined", extra=extra)
