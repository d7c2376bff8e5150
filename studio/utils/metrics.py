"""
Prometheus metrics for the gateway client.
"""
from prometheus_client import Counter, Histogram


gateway_requests_total = Counter(
    "gateway_requests_total",
    "Total generative API calls",
    ["operation", "status"],  # status: ok, error
)

gateway_retries_total = Counter(
    "gateway_retries_total",
    "Total retries scheduled after transport failures",
    ["operation"],
)

gateway_failures_total = Counter(
    "gateway_failures_total",
    "Total classified gateway failures",
    ["operation", "failure_type"],
)

suite_items_failed_total = Counter(
    "suite_items_failed_total",
    "Suite items that came back without an image",
    ["platform"],
)

# Histograms
gateway_request_duration_seconds = Histogram(
    "gateway_request_duration_seconds",
    "Duration of a single HTTP exchange with the provider",
    ["operation"],
    buckets=(0.5, 1, 2.5, 5, 10, 20, 40, 60, 120, 180),
)
