"""Coin amounts and gas price parsing.

Coins are written the way the Cosmos SDK prints them: the amount
immediately followed by the denomination, e.g. ``1000uatom`` or
``0.025uatom`` for a decimal gas price.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal, InvalidOperation

DENOM_PATTERN = r"[a-zA-Z][a-zA-Z0-9/:._-]{2,127}"
COIN_PATTERN = re.compile(rf"^\s*(\d+)\s*({DENOM_PATTERN})\s*$")
DEC_COIN_PATTERN = re.compile(rf"^\s*(\d+(?:\.\d+)?)\s*({DENOM_PATTERN})\s*$")


@dataclass(frozen=True)
class Coin:
    """Integer amount of a single denomination."""

    denom: str
    amount: int

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"

    def to_amino(self) -> dict[str, str]:
        return {"amount": str(self.amount), "denom": self.denom}


@dataclass(frozen=True)
class DecCoin:
    """Decimal amount of a single denomination (used for gas prices)."""

    denom: str
    amount: Decimal

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


def parse_coin(value: str) -> Coin:
    """Parse a coin string such as ``1000uatom``.

    Raises
    ------
    ValueError
        If the string is not a valid positive coin.
    """
    match = COIN_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid coin: {value!r}")
    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError(f"Coin amount must be positive: {value!r}")
    return Coin(denom=match.group(2), amount=amount)


def parse_dec_coins(value: str) -> list[DecCoin]:
    """Parse a comma separated list of decimal coins, e.g. ``0.025uatom,0.1stake``."""
    coins: list[DecCoin] = []
    for part in value.split(","):
        if not part.strip():
            continue
        match = DEC_COIN_PATTERN.match(part)
        if not match:
            raise ValueError(f"Invalid decimal coin: {part!r}")
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation:
            raise ValueError(f"Invalid decimal coin: {part!r}") from None
        coins.append(DecCoin(denom=match.group(2), amount=amount))
    denoms = [c.denom for c in coins]
    if len(set(denoms)) != len(denoms):
        raise ValueError(f"Duplicate denomination in {value!r}")
    return sorted(coins, key=lambda c: c.denom)


def fees_from_gas_prices(gas_prices: list[DecCoin], gas: int) -> list[Coin]:
    """Compute the fee for ``gas`` units, rounding each denomination up."""
    fees = []
    for price in gas_prices:
        amount = (price.amount * gas).to_integral_value(rounding=ROUND_CEILING)
        if amount > 0:
            fees.append(Coin(denom=price.denom, amount=int(amount)))
    return fees
