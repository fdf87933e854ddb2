"""Rate Limiter for DRIP faucet.

Features:
- One fixed cooldown window per recipient address
- Atomic check-and-record under a lock
- Lazy eviction of expired entries plus a periodic sweep
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from drip.errors import RateLimited
from drip.observability.metrics import RATE_LIMITED_ADDRESSES

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Result of an admitted rate limit check."""

    address: str
    admitted_at: float
    wait: timedelta  # Always zero for an admitted request


class RateLimiter:
    """Per-address cooldown for faucet requests.

    State lives in memory only and is lost on restart.

    Parameters
    ----------
    cooldown_seconds : int
        Seconds an address must wait between admitted requests.
    clock : Callable[[], float]
        Monotonic time source, overridable in tests.
    """

    def __init__(
        self,
        cooldown_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_request: dict[str, float] = {}

    @property
    def cooldown(self) -> timedelta:
        return timedelta(seconds=self._cooldown_seconds)

    @property
    def tracked(self) -> int:
        """Number of addresses currently inside their cooldown window."""
        return len(self._last_request)

    def _remaining(self, address: str, now: float) -> float | None:
        """Seconds left in the address's window, or None if it may request."""
        last = self._last_request.get(address)
        if last is None:
            return None
        elapsed = now - last
        if elapsed < self._cooldown_seconds:
            return self._cooldown_seconds - elapsed
        # Expired, evict on access
        del self._last_request[address]
        RATE_LIMITED_ADDRESSES.set(len(self._last_request))
        return None

    async def check_and_record(self, address: str) -> RateLimitResult:
        """Admit ``address`` and record the request, or reject it.

        A rejected request does not move the window forward.

        Raises
        ------
        RateLimited
            If the address was admitted within the cooldown window.
        """
        async with self._lock:
            now = self._clock()
            remaining = self._remaining(address, now)
            if remaining is not None:
                raise RateLimited(address, timedelta(seconds=remaining), self.cooldown)
            self._last_request[address] = now
            RATE_LIMITED_ADDRESSES.set(len(self._last_request))

        logger.debug("Rate limit recorded", extra={"address": address})
        return RateLimitResult(address=address, admitted_at=now, wait=timedelta(0))

    async def get_wait(self, address: str) -> timedelta:
        """Time until ``address`` may request again (zero if it may now)."""
        async with self._lock:
            remaining = self._remaining(address, self._clock())
        return timedelta(seconds=remaining or 0)

    async def sweep(self) -> int:
        """Evict every entry whose window has elapsed.

        Returns
        -------
        int
            Number of entries evicted.
        """
        async with self._lock:
            cutoff = self._clock() - self._cooldown_seconds
            expired = [a for a, last in self._last_request.items() if last <= cutoff]
            for address in expired:
                del self._last_request[address]
            RATE_LIMITED_ADDRESSES.set(len(self._last_request))

        if expired:
            logger.debug("Rate limit entries evicted", extra={"count": len(expired)})
        return len(expired)

    async def reset(self, address: str) -> None:
        """Forget an address (admin function)."""
        async with self._lock:
            self._last_request.pop(address, None)
            RATE_LIMITED_ADDRESSES.set(len(self._last_request))
        logger.info("Rate limit reset for address", extra={"address": address})
