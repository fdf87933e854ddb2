"""DRIP - rate-limited faucet for Cosmos SDK networks."""

__version__ = "0.1.0"
