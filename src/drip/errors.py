"""Error taxonomy for the faucet pipeline.

Validation and rate-limit errors are reported to the caller verbatim.
Everything raised while building, signing or broadcasting is collapsed to
a generic failure by the HTTP handler.
"""

from datetime import timedelta


def format_duration(seconds: float) -> str:
    """Format a duration for user display (e.g. ``4m 59s``)."""
    seconds = max(0, int(round(seconds)))
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining_seconds = divmod(seconds, 60)
    if remaining_seconds:
        return f"{minutes}m {remaining_seconds}s"
    return f"{minutes}m"


class FaucetError(Exception):
    """Base class for all faucet errors."""


class MalformedRequest(FaucetError):
    """Request body could not be parsed or carries an invalid address."""


class ChainMismatch(FaucetError):
    """Request targets a different network than the one configured."""

    def __init__(self, expected: str, got: str):
        self.expected = expected
        self.got = got
        super().__init__(f"Invalid chain id: exp({expected}) got({got})")


class RateLimited(FaucetError):
    """Address requested funds within the cooldown window."""

    def __init__(self, address: str, wait: timedelta, cooldown: timedelta):
        self.address = address
        self.wait = wait
        self.cooldown = cooldown
        super().__init__(
            f"{address} has requested funds within the last "
            f"{format_duration(cooldown.total_seconds())}, "
            f"wait {format_duration(wait.total_seconds())} before trying again"
        )


class KeyNotFound(FaucetError):
    """No key with the given name or address exists in the keystore."""


class AccountNotFound(FaucetError):
    """Signer address has never appeared on chain."""


class SigningError(FaucetError):
    """Keystore could not produce a signature."""


class NetworkError(FaucetError):
    """Transport-level failure talking to the node (unreachable, timeout)."""


class BroadcastRejected(FaucetError):
    """Transaction was submitted but rejected by on-chain validation."""

    def __init__(self, code: int, codespace: str, raw_log: str):
        self.code = code
        self.codespace = codespace
        self.raw_log = raw_log
        super().__init__(
            f"failed to send transaction: codespace={codespace} code={code}: {raw_log}"
        )
