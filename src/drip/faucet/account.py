"""Account state lookup for the faucet signer."""

import logging

from drip.chain.client import LedgerClient
from drip.chain.tx import AccountState

logger = logging.getLogger(__name__)


class AccountResolver:
    """Fetches a signer's account number and sequence.

    Results are never cached: the sequence must match the chain exactly at
    signing time.

    Parameters
    ----------
    client : LedgerClient
        Client used to query the network.
    """

    def __init__(self, client: LedgerClient):
        self._client = client

    async def resolve(self, signer_address: str) -> AccountState:
        """Return the current account state of ``signer_address``.

        Raises
        ------
        AccountNotFound
            If the address has never appeared on chain.
        NetworkError
            On transport failure.
        """
        state = await self._client.get_account(signer_address)
        logger.debug(
            "Signer account resolved",
            extra={
                "signer": signer_address,
                "account_number": state.account_number,
                "sequence": state.sequence,
            },
        )
        return state
