"""Faucet Service for DRIP.

Coordinates all faucet components:
- Request validation (chain id, recipient address)
- Rate limiter
- Transaction sender
"""

import asyncio
import logging
from dataclasses import dataclass

from drip.chain.client import LedgerClient
from drip.chain.coins import Coin
from drip.chain.tx import BroadcastResult, MsgSend
from drip.config import DripConfig
from drip.core.keystore import Keystore, validate_address
from drip.errors import ChainMismatch, MalformedRequest
from drip.observability.metrics import TOKENS_DISTRIBUTED

from .account import AccountResolver
from .broadcaster import Broadcaster
from .builder import TransactionBuilder
from .rate_limiter import RateLimiter
from .sender import TransactionSender

logger = logging.getLogger(__name__)


@dataclass
class FaucetResult:
    """Result of a successful faucet request."""

    address: str
    amount: Coin
    tx_hash: str
    height: int


class FaucetService:
    """Main faucet service orchestrating all components.

    Parameters
    ----------
    chain_id : str
        Network requests must target.
    account_prefix : str
        Bech32 prefix recipient addresses must carry.
    from_address : str
        Funding address; its key must be in ``keystore``.
    amount : Coin
        Fixed amount sent per request.
    keystore : Keystore
        Keystore holding the funding key.
    rate_limiter : RateLimiter
        Per-address cooldown.
    sender : TransactionSender
        Builds, signs and broadcasts transfers.
    sweep_interval_seconds : int
        How often expired rate limit entries are evicted.
    """

    def __init__(
        self,
        chain_id: str,
        account_prefix: str,
        from_address: str,
        amount: Coin,
        keystore: Keystore,
        rate_limiter: RateLimiter,
        sender: TransactionSender,
        sweep_interval_seconds: int = 60,
    ):
        self._chain_id = chain_id
        self._account_prefix = account_prefix
        self._from_address = from_address
        self._amount = amount
        self._keystore = keystore
        self._rate_limiter = rate_limiter
        self._sender = sender
        self._sweep_interval = sweep_interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Check if the faucet service is running."""
        return self._running

    @property
    def chain_id(self) -> str:
        return self._chain_id

    @property
    def amount(self) -> Coin:
        return self._amount

    async def start(self) -> None:
        """Start the faucet service and its rate limit sweep."""
        if self._running:
            logger.warning("Faucet service already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "Faucet service started",
            extra={"sweep_interval_seconds": self._sweep_interval},
        )

    async def stop(self) -> None:
        """Stop the faucet service."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Faucet service stopped")

    async def _sweep_loop(self) -> None:
        """Periodically evict expired rate limit entries."""
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self._rate_limiter.sweep()
            except Exception as e:
                logger.error(
                    "Error in rate limit sweep",
                    extra={"error": str(e)},
                    exc_info=True,
                )

    def validate(self, chain_id: str, address: str) -> str:
        """Check a request targets this network and names a valid recipient.

        Returns
        -------
        str
            The address in lowercase. Bech32 also accepts the all-uppercase
            form, which names the same account.

        Raises
        ------
        ChainMismatch
            If ``chain_id`` is not the configured network.
        MalformedRequest
            If ``address`` is not a bech32 address for this network.
        """
        if chain_id != self._chain_id:
            raise ChainMismatch(expected=self._chain_id, got=chain_id)
        if not validate_address(address, self._account_prefix):
            raise MalformedRequest(f"Invalid address: {address}")
        return address.lower()

    async def request_funds(self, chain_id: str, address: str) -> FaucetResult:
        """Handle a faucet request end to end.

        Raises
        ------
        ChainMismatch, MalformedRequest
            If validation fails.
        RateLimited
            If ``address`` is inside its cooldown window.
        FaucetError
            Any build, sign or broadcast failure.
        """
        address = self.validate(chain_id, address)
        await self._rate_limiter.check_and_record(address)

        result = await self.faucet_send(address)
        TOKENS_DISTRIBUTED.labels(denom=self._amount.denom).inc(self._amount.amount)
        logger.info(
            "Funds sent",
            extra={
                "recipient": address,
                "amount": str(self._amount),
                "tx_hash": result.txhash,
            },
        )
        return FaucetResult(
            address=address,
            amount=self._amount,
            tx_hash=result.txhash,
            height=result.height,
        )

    async def faucet_send(self, to_address: str) -> BroadcastResult:
        """Send the configured amount to ``to_address`` without rate limiting.

        Raises
        ------
        BroadcastRejected
            If the transaction was rejected on chain.
        FaucetError
            Any other build, sign or broadcast failure.
        """
        info = self._keystore.key_by_address(self._from_address)
        msg = MsgSend(
            from_address=self._from_address,
            to_address=to_address,
            amount=(self._amount,),
        )
        result = await self._sender.send_msg_with_key(msg, info.name)
        result.raise_for_code()
        return result


def create_faucet_service(
    config: DripConfig,
    keystore: Keystore,
    client: LedgerClient,
    rate_limiter: RateLimiter | None = None,
) -> FaucetService:
    """Wire a FaucetService and its pipeline from configuration.

    Raises
    ------
    KeyNotFound
        If the configured key is not in ``keystore``.
    """
    from_address = keystore.key_by_name(config.key_name).address
    builder = TransactionBuilder(
        keystore=keystore,
        resolver=AccountResolver(client),
        chain_id=config.chain_id,
        gas=config.gas,
        gas_adjustment=config.gas_adjustment,
        gas_prices=config.gas_price_coins,
        memo=config.memo,
    )
    broadcaster = Broadcaster(client, timeout_seconds=config.broadcast_timeout_seconds)
    return FaucetService(
        chain_id=config.chain_id,
        account_prefix=config.account_prefix,
        from_address=from_address,
        amount=config.amount_coin,
        keystore=keystore,
        rate_limiter=rate_limiter or RateLimiter(cooldown_seconds=config.cooldown_seconds),
        sender=TransactionSender(builder, broadcaster),
        sweep_interval_seconds=config.sweep_interval_seconds,
    )
