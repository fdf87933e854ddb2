"""Commit-mode transaction broadcast."""

import asyncio
import logging
import time

from drip.chain.client import LedgerClient
from drip.chain.tx import BroadcastResult, SignedTransaction
from drip.errors import NetworkError
from drip.observability.metrics import BROADCAST_FAILURES, TRANSACTION_DURATION

logger = logging.getLogger(__name__)


class Broadcaster:
    """Submits signed transactions and waits for block inclusion.

    Parameters
    ----------
    client : LedgerClient
        Client used to submit transactions.
    timeout_seconds : float
        Upper bound on the commit wait.
    """

    def __init__(self, client: LedgerClient, timeout_seconds: float = 30.0):
        self._client = client
        self._timeout = timeout_seconds

    async def broadcast_commit(self, signed_tx: SignedTransaction) -> BroadcastResult:
        """Broadcast ``signed_tx`` and wait for commit.

        Callers must check ``BroadcastResult.code``: on-chain rejection is not
        raised.

        Raises
        ------
        NetworkError
            If the node is unreachable or the commit wait times out.
        """
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                self._client.broadcast_commit(signed_tx), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            BROADCAST_FAILURES.labels(reason="timeout").inc()
            raise NetworkError(
                f"Timed out after {self._timeout}s waiting for transaction to commit"
            ) from None
        except NetworkError:
            BROADCAST_FAILURES.labels(reason="transport").inc()
            raise
        finally:
            TRANSACTION_DURATION.labels(operation="broadcast").observe(time.monotonic() - start)

        if result.succeeded:
            logger.info(
                "Transaction committed",
                extra={"tx_hash": result.txhash, "height": result.height},
            )
        else:
            BROADCAST_FAILURES.labels(reason="rejected").inc()
            logger.warning(
                "Transaction rejected",
                extra={
                    "tx_hash": result.txhash,
                    "code": result.code,
                    "codespace": result.codespace,
                    "raw_log": result.raw_log,
                },
            )
        return result
