"""Transaction types for the Cosmos legacy (amino JSON) signing format.

An :class:`UnsignedTransaction` renders the canonical sign document the
node verifies signatures against. Signing it yields a
:class:`SignedTransaction` ready for the LCD ``/txs`` endpoint.
"""

import base64
import json
from dataclasses import dataclass, field
from typing import Any

from drip.errors import BroadcastRejected

from .coins import Coin, DecCoin, fees_from_gas_prices

PUBKEY_TYPE = "tendermint/PubKeySecp256k1"
STD_TX_TYPE = "cosmos-sdk/StdTx"


def canonical_json(data: Any) -> bytes:
    """Serialize with sorted keys and no whitespace, HTML characters escaped.

    Matches the byte layout the SDK uses for amino JSON sign documents.
    """
    encoded = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    encoded = encoded.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")
    return encoded.encode("utf-8")


@dataclass(frozen=True)
class MsgSend:
    """Bank transfer from one address to another."""

    from_address: str
    to_address: str
    amount: tuple[Coin, ...]

    def to_amino(self) -> dict[str, Any]:
        return {
            "type": "cosmos-sdk/MsgSend",
            "value": {
                "from_address": self.from_address,
                "to_address": self.to_address,
                "amount": [c.to_amino() for c in sorted(self.amount, key=lambda c: c.denom)],
            },
        }


@dataclass(frozen=True)
class AccountState:
    """On-chain account number and anti-replay sequence of a signer."""

    account_number: int
    sequence: int


@dataclass
class UnsignedTransaction:
    """Transaction envelope before signing."""

    msgs: list[MsgSend]
    account_number: int
    sequence: int
    gas: int
    gas_adjustment: float
    chain_id: str
    memo: str = ""
    gas_prices: list[DecCoin] = field(default_factory=list)
    fees: list[Coin] = field(default_factory=list)

    def fee_amount(self) -> list[Coin]:
        """Explicit fees if any, otherwise gas price x gas."""
        if self.fees:
            return sorted(self.fees, key=lambda c: c.denom)
        return fees_from_gas_prices(self.gas_prices, self.gas)

    def std_fee(self) -> dict[str, Any]:
        return {
            "amount": [c.to_amino() for c in self.fee_amount()],
            "gas": str(self.gas),
        }

    def sign_doc(self) -> dict[str, Any]:
        return {
            "account_number": str(self.account_number),
            "chain_id": self.chain_id,
            "fee": self.std_fee(),
            "memo": self.memo,
            "msgs": [m.to_amino() for m in self.msgs],
            "sequence": str(self.sequence),
        }

    def sign_bytes(self) -> bytes:
        """Bytes covered by the signature."""
        return canonical_json(self.sign_doc())

    def with_signature(self, signature: bytes, pub_key: bytes) -> "SignedTransaction":
        """Attach a signature, producing a broadcastable transaction."""
        return SignedTransaction(
            std_tx={
                "msg": [m.to_amino() for m in self.msgs],
                "fee": self.std_fee(),
                "signatures": [
                    {
                        "pub_key": {
                            "type": PUBKEY_TYPE,
                            "value": base64.b64encode(pub_key).decode(),
                        },
                        "signature": base64.b64encode(signature).decode(),
                    }
                ],
                "memo": self.memo,
            },
            account_number=self.account_number,
            sequence=self.sequence,
        )


@dataclass(frozen=True)
class SignedTransaction:
    """Signed StdTx. Single use: its sequence is consumed on inclusion."""

    std_tx: dict[str, Any]
    account_number: int
    sequence: int

    def to_amino(self) -> dict[str, Any]:
        return {"type": STD_TX_TYPE, "value": self.std_tx}

    def broadcast_body(self, mode: str = "block") -> dict[str, Any]:
        return {"tx": self.std_tx, "mode": mode}


@dataclass(frozen=True)
class BroadcastResult:
    """Outcome of a committed broadcast. ``code == 0`` means success."""

    code: int
    codespace: str
    raw_log: str
    txhash: str
    height: int = 0

    @property
    def succeeded(self) -> bool:
        return self.code == 0

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "BroadcastResult":
        """Build from an LCD ``/txs`` response body."""
        return cls(
            code=int(data.get("code") or 0),
            codespace=data.get("codespace") or "",
            raw_log=data.get("raw_log") or "",
            txhash=data.get("txhash") or "",
            height=int(data.get("height") or 0),
        )

    def raise_for_code(self) -> None:
        """Raise :class:`BroadcastRejected` if the transaction failed on chain."""
        if not self.succeeded:
            raise BroadcastRejected(self.code, self.codespace, self.raw_log)
