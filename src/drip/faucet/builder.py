"""Transaction assembly and signing."""

import logging

from drip.chain.coins import DecCoin
from drip.chain.tx import MsgSend, SignedTransaction, UnsignedTransaction
from drip.core.keystore import DEFAULT_KEY_PASS, Keystore
from drip.errors import KeyNotFound, SigningError

from .account import AccountResolver

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """Builds and signs transactions with a named keystore key.

    Parameters
    ----------
    keystore : Keystore
        Source of key identities and signatures.
    resolver : AccountResolver
        Resolves the signer's account number and sequence.
    chain_id : str
        Network the transaction is bound to.
    gas : int
        Fixed gas limit.
    gas_adjustment : float
        Multiplier applied to simulated gas; recorded in the envelope.
    gas_prices : list[DecCoin]
        Prices used to compute the fee from the gas limit.
    memo : str
        Memo attached to every transaction.
    """

    def __init__(
        self,
        keystore: Keystore,
        resolver: AccountResolver,
        chain_id: str,
        gas: int = 200000,
        gas_adjustment: float = 1.0,
        gas_prices: list[DecCoin] | None = None,
        memo: str = "",
    ):
        self._keystore = keystore
        self._resolver = resolver
        self._chain_id = chain_id
        self._gas = gas
        self._gas_adjustment = gas_adjustment
        self._gas_prices = list(gas_prices or [])
        self._memo = memo

    async def build(self, msgs: list[MsgSend], key_name: str) -> UnsignedTransaction:
        """Assemble an unsigned transaction for the named key.

        Raises
        ------
        KeyNotFound
            If ``key_name`` is unknown.
        AccountNotFound, NetworkError
            From the account lookup.
        """
        info = self._keystore.key_by_name(key_name)
        state = await self._resolver.resolve(info.address)
        return UnsignedTransaction(
            msgs=list(msgs),
            account_number=state.account_number,
            sequence=state.sequence,
            gas=self._gas,
            gas_adjustment=self._gas_adjustment,
            chain_id=self._chain_id,
            memo=self._memo,
            gas_prices=self._gas_prices,
            fees=[],
        )

    async def build_and_sign(self, msgs: list[MsgSend], key_name: str) -> SignedTransaction:
        """Assemble a transaction and sign it with ``key_name``.

        Raises
        ------
        KeyNotFound
            If ``key_name`` is unknown.
        SigningError
            If the keystore cannot produce a signature.
        AccountNotFound, NetworkError
            From the account lookup.
        """
        tx = await self.build(msgs, key_name)
        try:
            signature, pub_key = self._keystore.sign(key_name, DEFAULT_KEY_PASS, tx.sign_bytes())
        except (KeyNotFound, SigningError):
            raise
        except Exception as e:
            raise SigningError(f"Failed to sign with key {key_name}: {e}") from e

        logger.debug(
            "Transaction signed",
            extra={
                "key_name": key_name,
                "account_number": tx.account_number,
                "sequence": tx.sequence,
            },
        )
        return tx.with_signature(signature, pub_key)
