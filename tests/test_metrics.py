"""Tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from drip.observability.metrics import (
    BROADCAST_FAILURES,
    RATE_LIMITED_ADDRESSES,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
    TRANSACTION_DURATION,
)


class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_requests_counter_labels(self):
        """REQUESTS counter is labelled by response status."""
        REQUESTS.labels(status="201").inc()

        sample = REGISTRY.get_sample_value("drip_requests_total", {"status": "201"})
        assert sample is not None
        assert sample >= 1

    def test_tokens_distributed_counter(self):
        """TOKENS_DISTRIBUTED counter tracks distribution per denom."""
        initial = (
            REGISTRY.get_sample_value("drip_tokens_distributed_total", {"denom": "ustake"})
            or 0
        )

        TOKENS_DISTRIBUTED.labels(denom="ustake").inc(1000)

        current = REGISTRY.get_sample_value("drip_tokens_distributed_total", {"denom": "ustake"})
        assert current == initial + 1000

    def test_broadcast_failures_counter(self):
        """BROADCAST_FAILURES counter is labelled by reason."""
        BROADCAST_FAILURES.labels(reason="timeout").inc()

        sample = REGISTRY.get_sample_value(
            "drip_broadcast_failures_total", {"reason": "timeout"}
        )
        assert sample is not None
        assert sample >= 1

    def test_rate_limited_addresses_gauge(self):
        """RATE_LIMITED_ADDRESSES gauge tracks limiter size."""
        RATE_LIMITED_ADDRESSES.set(7)

        assert REGISTRY.get_sample_value("drip_rate_limited_addresses") == 7

    def test_request_duration_histogram(self):
        """REQUEST_DURATION histogram tracks timing."""
        REQUEST_DURATION.observe(0.5)

        sample = REGISTRY.get_sample_value("drip_request_duration_seconds_count")
        assert sample is not None
        assert sample >= 1

    def test_transaction_duration_histogram(self):
        """TRANSACTION_DURATION histogram tracks timing."""
        TRANSACTION_DURATION.labels(operation="broadcast").observe(5.0)

        sample = REGISTRY.get_sample_value(
            "drip_transaction_duration_seconds_count",
            {"operation": "broadcast"},
        )
        assert sample is not None
        assert sample >= 1
