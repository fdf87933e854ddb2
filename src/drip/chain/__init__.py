"""Blockchain integration for DRIP."""

from .client import LCDClient, LedgerClient
from .coins import Coin, DecCoin, parse_coin, parse_dec_coins
from .tx import AccountState, BroadcastResult, MsgSend, SignedTransaction, UnsignedTransaction

__all__ = [
    "AccountState",
    "BroadcastResult",
    "Coin",
    "DecCoin",
    "LCDClient",
    "LedgerClient",
    "MsgSend",
    "SignedTransaction",
    "UnsignedTransaction",
    "parse_coin",
    "parse_dec_coins",
]
