"""Prometheus metrics for projections, record writes and storage health"""

from prometheus_client import Counter, Histogram

# Projection metrics
projection_counter = Counter(
    "care_finance_projection_total",
    "Monthly projections computed",
    ["kind", "status"],  # income | expense; actual | forecast | prediction
)

report_months_histogram = Histogram(
    "care_finance_report_months",
    "Months covered per consolidated report",
    buckets=[1, 3, 6, 12, 24, 36],
)

# Write metrics
record_upsert_counter = Counter(
    "care_finance_record_upsert_total",
    "Rows created or replaced",
    ["entity"],  # income | expense | bank_balance | billing | factoring | budget | loan | month_status
)

billing_duplicates_counter = Counter(
    "care_finance_billing_duplicates_total",
    "Billing rows skipped because their natural key already exists",
)

# Storage health
persistence_failure_counter = Counter(
    "care_finance_persistence_failures_total",
    "Database operations failed because storage was unreachable",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_projection(kind: str, status: str) -> None:
    projection_counter.labels(kind=kind, status=status).inc()


def record_upsert(entity: str, count: int = 1) -> None:
    if count > 0:
        record_upsert_counter.labels(entity=entity).inc(count)
