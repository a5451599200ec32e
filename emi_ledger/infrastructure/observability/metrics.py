"""Prometheus metrics for monitoring payment outcomes, amounts, and transaction retries"""

from decimal import Decimal
from prometheus_client import Counter, Histogram

# Payment metrics
payment_counter = Counter(
    "emi_payment_total",
    "Payment requests processed",
    ["outcome"],  # success | invalid | not_found | storage_error
)

payment_amount_histogram = Histogram(
    "emi_payment_amount",
    "Accepted payment amounts",
    buckets=[100, 500, 1000, 2500, 5000, 10000, 25000, 50000, 100000],
)

# Transaction metrics
transaction_retry_counter = Counter(
    "emi_ledger_transaction_retries_total",
    "Payment transactions retried after a transient storage conflict",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(outcome: str, amount: Decimal | None = None) -> None:
    """Record payment outcome and, for accepted payments, the amount"""
    payment_counter.labels(outcome=outcome).inc()
    if outcome == "success" and amount is not None:
        payment_amount_histogram.observe(float(amount))
