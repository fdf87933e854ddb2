"""Ledger client for Cosmos SDK nodes.

Talks to the legacy LCD REST API over aiohttp:

- ``GET /auth/accounts/{address}`` for account number and sequence
- ``POST /txs`` in ``block`` mode for commit-level broadcast
- ``GET /node_info`` for the node's network (chain id)
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import aiohttp

from drip.errors import AccountNotFound, NetworkError

from .tx import AccountState, BroadcastResult, SignedTransaction

logger = logging.getLogger(__name__)


def _find_base_account(value: Any) -> dict[str, Any] | None:
    """Locate the object carrying ``account_number`` in an account response.

    Vesting and module accounts nest the base account one or more levels
    deep, e.g. ``{"BaseVestingAccount": {"BaseAccount": {...}}}``.
    """
    if not isinstance(value, dict):
        return None
    if "account_number" in value:
        return value
    for nested in value.values():
        found = _find_base_account(nested)
        if found is not None:
            return found
    return None


class LedgerClient(ABC):
    """Account lookup and commit-mode broadcast against a network."""

    @abstractmethod
    async def get_account(self, address: str) -> AccountState:
        """Fetch the current account number and sequence of ``address``.

        Raises
        ------
        AccountNotFound
            If the address has never appeared on chain.
        NetworkError
            On transport failure.
        """
        ...

    @abstractmethod
    async def broadcast_commit(self, signed_tx: SignedTransaction) -> BroadcastResult:
        """Submit a transaction and wait until it is included in a block.

        Raises
        ------
        NetworkError
            On transport failure or timeout. On-chain rejection is reported
            through ``BroadcastResult.code`` instead.
        """
        ...

    @abstractmethod
    async def node_info(self) -> dict[str, Any]:
        """Return the node's info document."""
        ...

    async def close(self) -> None:
        """Release network resources."""


class LCDClient(LedgerClient):
    """Ledger client backed by a node's LCD REST server.

    Parameters
    ----------
    endpoint : str
        Base URL of the LCD server, e.g. ``http://localhost:1317``.
    request_timeout : float
        Timeout in seconds for queries.
    broadcast_timeout : float
        Timeout in seconds for a commit-mode broadcast (block time plus margin).
    """

    def __init__(
        self,
        endpoint: str,
        request_timeout: float = 10.0,
        broadcast_timeout: float = 30.0,
    ):
        self._endpoint = endpoint.rstrip("/")
        self._request_timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._broadcast_timeout = aiohttp.ClientTimeout(total=broadcast_timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        timeout: aiohttp.ClientTimeout,
        json_body: dict[str, Any] | None = None,
    ) -> tuple[int, str]:
        url = f"{self._endpoint}{path}"
        try:
            async with self._get_session().request(
                method, url, json=json_body, timeout=timeout
            ) as resp:
                return resp.status, await resp.text()
        except asyncio.TimeoutError:
            raise NetworkError(
                f"{method} {path} timed out after {timeout.total}s"
            ) from None
        except aiohttp.ClientError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _decode(path: str, text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError:
            raise NetworkError(f"Invalid JSON from {path}: {text[:200]}") from None

    async def get_account(self, address: str) -> AccountState:
        path = f"/auth/accounts/{address}"
        status, text = await self._request("GET", path, self._request_timeout)

        if status == 404 or (status != 200 and "does not exist" in text):
            raise AccountNotFound(f"account {address} does not exist")
        if status != 200:
            raise NetworkError(f"Account query failed: HTTP {status}: {text}")

        data = self._decode(path, text)
        account = _find_base_account(data.get("result", data) if isinstance(data, dict) else None)
        if account is None or not account.get("address"):
            raise AccountNotFound(f"account {address} does not exist")

        state = AccountState(
            account_number=int(account.get("account_number") or 0),
            sequence=int(account.get("sequence") or 0),
        )
        logger.debug(
            "Account resolved",
            extra={
                "address": address,
                "account_number": state.account_number,
                "sequence": state.sequence,
            },
        )
        return state

    async def broadcast_commit(self, signed_tx: SignedTransaction) -> BroadcastResult:
        status, text = await self._request(
            "POST", "/txs", self._broadcast_timeout, json_body=signed_tx.broadcast_body("block")
        )
        if status != 200:
            raise NetworkError(f"Broadcast failed: HTTP {status}: {text}")
        data = self._decode("/txs", text)
        if not isinstance(data, dict):
            raise NetworkError(f"Unexpected broadcast response: {text[:200]}")
        return BroadcastResult.from_response(data)

    async def node_info(self) -> dict[str, Any]:
        status, text = await self._request("GET", "/node_info", self._request_timeout)
        if status != 200:
            raise NetworkError(f"Node info query failed: HTTP {status}: {text}")
        return self._decode("/node_info", text)
