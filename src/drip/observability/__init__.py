"""Observability module for DRIP faucet."""

from .health import (
    FaucetRunningCheck,
    HealthCheck,
    HealthServer,
    HealthStatus,
    LCDHealthCheck,
)
from .logging import clear_request_id, configure_logging, get_logger, set_request_id
from .metrics import (
    BROADCAST_FAILURES,
    RATE_LIMITED_ADDRESSES,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
    TRANSACTION_DURATION,
)

__all__ = [
    # Health
    "FaucetRunningCheck",
    "HealthCheck",
    "HealthServer",
    "HealthStatus",
    "LCDHealthCheck",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "set_request_id",
    # Metrics
    "BROADCAST_FAILURES",
    "RATE_LIMITED_ADDRESSES",
    "REQUEST_DURATION",
    "REQUESTS",
    "TOKENS_DISTRIBUTED",
    "TRANSACTION_DURATION",
]
