"""Tests for commit-mode broadcasting."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from drip.chain.tx import BroadcastResult
from drip.errors import NetworkError
from drip.faucet.broadcaster import Broadcaster


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.broadcast_commit = AsyncMock(
        return_value=BroadcastResult(code=0, codespace="", raw_log="[]", txhash="ABC", height=3)
    )
    return client


class TestBroadcaster:
    """Tests for Broadcaster."""

    @pytest.mark.asyncio
    async def test_success(self, mock_client):
        """Committed results are returned."""
        signed = MagicMock()

        result = await Broadcaster(mock_client).broadcast_commit(signed)

        assert result.txhash == "ABC"
        mock_client.broadcast_commit.assert_awaited_once_with(signed)

    @pytest.mark.asyncio
    async def test_rejection_returned(self, mock_client):
        """On-chain rejection is returned for the caller to inspect."""
        mock_client.broadcast_commit.return_value = BroadcastResult(
            code=5, codespace="sdk", raw_log="insufficient funds", txhash="DEF"
        )

        result = await Broadcaster(mock_client).broadcast_commit(MagicMock())

        assert result.succeeded is False
        assert result.code == 5

    @pytest.mark.asyncio
    async def test_timeout(self, mock_client):
        """A commit wait beyond the timeout raises NetworkError."""

        async def slow(_tx):
            await asyncio.sleep(1)

        mock_client.broadcast_commit.side_effect = slow

        with pytest.raises(NetworkError, match="Timed out"):
            await Broadcaster(mock_client, timeout_seconds=0.05).broadcast_commit(MagicMock())

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, mock_client):
        """Transport failures propagate as NetworkError."""
        mock_client.broadcast_commit.side_effect = NetworkError("POST /txs failed: refused")

        with pytest.raises(NetworkError, match="refused"):
            await Broadcaster(mock_client).broadcast_commit(MagicMock())
