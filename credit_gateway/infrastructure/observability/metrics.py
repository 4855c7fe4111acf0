"""Prometheus metrics for monitoring score syncs, lending actions, and upstream health"""

from prometheus_client import Counter, Histogram

# Sync metrics
sync_counter = Counter(
    "credit_sync_total",
    "Score synchronizations attempted",
    ["outcome"],  # confirmed | data_source_error | ledger_rejected | ledger_timeout
)

score_bucket_counter = Counter(
    "credit_synced_score_bucket",
    "Estimated scores submitted by bucket",
    ["bucket"],  # 0, 1-299, 300-699, 700+
)

# Trading data source metrics
data_source_failures_counter = Counter(
    "trading_data_failures_total",
    "Failed trading data acquisitions",
    ["kind"],  # unavailable | malformed
)

# Ledger metrics
ledger_confirmation_histogram = Histogram(
    "ledger_confirmation_seconds",
    "Time from ledger submission to confirmation",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ledger_failures_counter = Counter(
    "ledger_failures_total",
    "Ledger submissions or reads that did not succeed",
    ["kind"],  # rejected | timeout | unavailable
)

# Lending metrics
lending_action_counter = Counter(
    "credit_lending_actions_total",
    "Borrow and repay requests",
    ["action", "outcome"],  # outcome: confirmed | ineligible | failed
)

action_conflict_counter = Counter(
    "credit_action_conflicts_total",
    "Mutating requests rejected because another action was in flight",
    ["action"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sync(outcome: str, estimated_score: int | None = None) -> None:
    """Record sync outcome and the distribution of submitted scores"""
    sync_counter.labels(outcome=outcome).inc()

    if estimated_score is None:
        return

    if estimated_score == 0:
        bucket = "0"
    elif estimated_score < 300:
        bucket = "1-299"
    elif estimated_score < 700:
        bucket = "300-699"
    else:
        bucket = "700+"

    score_bucket_counter.labels(bucket=bucket).inc()
