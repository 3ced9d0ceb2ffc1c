"""Monitoring configuration for the vocabulary backend."""
from prometheus_client import Counter, Histogram, start_http_server

# Practice metrics
daily_selections = Counter(
    "linguamentor_daily_selections_total",
    "Total number of daily practice sets served",
    ["mode"],
)

answers_submitted = Counter(
    "linguamentor_answers_submitted_total",
    "Total number of answers recorded",
    ["result"],
)

mastery_transitions = Counter(
    "linguamentor_mastery_transitions_total",
    "Word status changes caused by answers",
    ["from_status", "to_status"],
)

# Storage metrics
storage_retries = Counter(
    "linguamentor_storage_retries_total",
    "Total number of retried storage transactions",
)

storage_errors = Counter(
    "linguamentor_storage_errors_total",
    "Total number of storage failures surfaced to callers",
    ["operation"],
)

# Performance metrics
request_duration = Histogram(
    "linguamentor_request_duration_seconds",
    "Duration of handled requests in seconds",
    ["handler"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
