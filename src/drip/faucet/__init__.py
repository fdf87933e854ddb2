"""Faucet components for DRIP."""

from .account import AccountResolver
from .broadcaster import Broadcaster
from .builder import TransactionBuilder
from .handler import FaucetHandler, FaucetRequest, FaucetServer, create_app
from .rate_limiter import RateLimiter, RateLimitResult
from .sender import TransactionSender
from .service import FaucetResult, FaucetService, create_faucet_service

__all__ = [
    "AccountResolver",
    "Broadcaster",
    "FaucetHandler",
    "FaucetRequest",
    "FaucetResult",
    "FaucetServer",
    "FaucetService",
    "RateLimitResult",
    "RateLimiter",
    "TransactionBuilder",
    "TransactionSender",
    "create_app",
    "create_faucet_service",
]
