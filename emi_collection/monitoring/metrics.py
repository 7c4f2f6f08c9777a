"""
Prometheus metrics for EMI collection monitoring.

Tracks:
- Payment submissions by outcome
- Payment processing duration
- Payment amounts
- Read endpoint calls by outcome
"""
from prometheus_client import Counter, Histogram

# Payment metrics
payment_requests_total = Counter(
    "emi_payment_requests_total",
    "Total number of payment submissions",
    ["outcome"],  # completed, validation_error, not_found, store_error
)

payment_processing_duration_seconds = Histogram(
    "emi_payment_processing_duration_seconds",
    "Payment transaction duration in seconds",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

payment_amount = Histogram(
    "emi_payment_amount",
    "Applied payment amounts",
    buckets=(100, 500, 1000, 2500, 5000, 10000, 25000, 50000, 100000),
)

# Read metrics
read_requests_total = Counter(
    "emi_read_requests_total",
    "Total read endpoint calls",
    ["endpoint", "outcome"],  # outcome: ok, not_found, store_error
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_payment_request(outcome: str) -> None:
        """Record a payment submission outcome."""
        payment_requests_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_payment_duration(duration_seconds: float) -> None:
        """Record payment transaction duration."""
        payment_processing_duration_seconds.observe(duration_seconds)

    @staticmethod
    def record_payment_amount(amount: float) -> None:
        """Record an applied payment amount."""
        payment_amount.observe(amount)

    @staticmethod
    def record_read(endpoint: str, outcome: str) -> None:
        """Record a read endpoint call."""
        read_requests_total.labels(endpoint=endpoint, outcome=outcome).inc()


# Export singleton instance
metrics = MetricsCollector()
