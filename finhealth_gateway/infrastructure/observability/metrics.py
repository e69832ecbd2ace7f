"""Prometheus metrics for monitoring indicator computations, rate lookups and storage health"""

from prometheus_client import Counter, Histogram

# Indicator metrics
metric_computation_counter = Counter(
    "finhealth_metric_computations_total",
    "Financial health indicators computed",
    ["metric"],
)

degenerate_metric_counter = Counter(
    "finhealth_degenerate_metrics_total",
    "Indicators guarded to 0 because of an empty denominator",
    ["metric"],
)

metric_value_histogram = Histogram(
    "finhealth_ratio_value",
    "Distribution of computed ratio and propensity values",
    ["metric"],
    buckets=[0.0, 0.1, 0.25, 0.5, 0.75, 1.0, 1.5, 2.0, 5.0],
)

# Exchange rate metrics
rate_lookup_miss_counter = Counter(
    "finhealth_rate_lookup_misses_total",
    "Conversions skipped because a currency is missing from the rate table",
    ["currency"],
)

rate_refresh_failure_counter = Counter(
    "finhealth_rate_refresh_failures_total",
    "Failed exchange rate provider fetches",
)

rate_fetch_latency_histogram = Histogram(
    "finhealth_rate_fetch_latency_seconds",
    "Exchange rate provider response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Storage metrics
storage_failure_counter = Counter(
    "finhealth_storage_failures_total",
    "Failed record queries",
    ["collection"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_metric(name: str, kind: str, value: float) -> None:
    """Record a computed indicator for monitoring"""
    metric_computation_counter.labels(metric=name).inc()

    # Deltas are absolute amounts in arbitrary currencies, not worth bucketing
    if kind != "delta":
        metric_value_histogram.labels(metric=name).observe(value)
