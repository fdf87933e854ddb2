"""Pytest configuration and fixtures for DRIP tests."""

import asyncio
import hashlib
import os

import pytest
from aiohttp import web
from bech32 import bech32_encode, convertbits

requires_ripemd160 = pytest.mark.skipif(
    "ripemd160" not in hashlib.algorithms_available,
    reason="ripemd160 unavailable in this Python build",
)


def make_address(seed: int, prefix: str = "cosmos") -> str:
    """Build a valid bech32 address from a 20-byte pattern."""
    return bech32_encode(prefix, convertbits(bytes([seed % 256]) * 20, 8, 5))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear DRIP-related environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("DRIP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def base_env(monkeypatch):
    """Minimal environment for DripConfig."""
    monkeypatch.setenv("DRIP_LCD_ENDPOINT", "http://localhost:1317")
    monkeypatch.setenv("DRIP_CHAIN_ID", "test-1")


# Test private key (DO NOT USE IN PRODUCTION - this is a well-known test key)
TEST_PRIVATE_KEY = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


@pytest.fixture
def test_private_key():
    return TEST_PRIVATE_KEY


class FakeLCD:
    """Minimal LCD REST server with scripted responses."""

    def __init__(self):
        self.accounts: dict[str, dict] = {}
        self.broadcast_response: dict = {"height": "10", "txhash": "ABCDEF", "raw_log": "[]"}
        self.broadcast_status = 200
        self.broadcast_delay = 0.0
        self.broadcast_bodies: list[dict] = []
        self.network = "test-1"

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/auth/accounts/{address}", self.handle_account)
        app.router.add_post("/txs", self.handle_txs)
        app.router.add_get("/node_info", self.handle_node_info)
        return app

    async def handle_account(self, request: web.Request) -> web.Response:
        address = request.match_info["address"]
        if address not in self.accounts:
            return web.json_response(
                {"error": f"account {address} does not exist"}, status=500
            )
        return web.json_response({"height": "10", "result": self.accounts[address]})

    async def handle_txs(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.broadcast_bodies.append(body)
        if self.broadcast_delay:
            await asyncio.sleep(self.broadcast_delay)
        return web.json_response(self.deliver(body), status=self.broadcast_status)

    def deliver(self, body: dict) -> dict:
        """Response for a broadcast body."""
        return self.broadcast_response

    async def handle_node_info(self, _request: web.Request) -> web.Response:
        return web.json_response({"node_info": {"network": self.network}})
