"""Prometheus metrics for DRIP faucet.

Metrics:
- drip_requests_total: Counter of faucet HTTP requests by response status
- drip_tokens_distributed_total: Counter of tokens distributed by denomination
- drip_broadcast_failures_total: Counter of failed broadcasts by reason
- drip_rate_limited_addresses: Gauge of addresses inside their cooldown window
- drip_request_duration_seconds: Histogram of request duration
- drip_transaction_duration_seconds: Histogram of transaction duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
REQUESTS = Counter(
    "drip_requests_total",
    "Total number of faucet requests",
    ["status"],
)

TOKENS_DISTRIBUTED = Counter(
    "drip_tokens_distributed_total",
    "Total tokens distributed",
    ["denom"],
)

BROADCAST_FAILURES = Counter(
    "drip_broadcast_failures_total",
    "Total failed transaction broadcasts",
    ["reason"],
)

# Gauges
RATE_LIMITED_ADDRESSES = Gauge(
    "drip_rate_limited_addresses",
    "Addresses currently tracked by the rate limiter",
)

# Histograms
REQUEST_DURATION = Histogram(
    "drip_request_duration_seconds",
    "Request processing duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TRANSACTION_DURATION = Histogram(
    "drip_transaction_duration_seconds",
    "Blockchain transaction duration",
    ["operation"],
    buckets=(1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)
