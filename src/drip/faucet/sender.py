"""Serialized build-sign-broadcast per signing key."""

import asyncio

from drip.chain.tx import BroadcastResult, MsgSend

from .broadcaster import Broadcaster
from .builder import TransactionBuilder


class TransactionSender:
    """Sends messages signed by a named key.

    Sends for the same key are serialized so two transactions never read the
    same sequence. Different keys proceed in parallel.

    Parameters
    ----------
    builder : TransactionBuilder
        Builds and signs transactions.
    broadcaster : Broadcaster
        Broadcasts signed transactions.
    """

    def __init__(self, builder: TransactionBuilder, broadcaster: Broadcaster):
        self._builder = builder
        self._broadcaster = broadcaster
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key_name: str) -> asyncio.Lock:
        lock = self._locks.get(key_name)
        if lock is None:
            lock = self._locks[key_name] = asyncio.Lock()
        return lock

    async def send_msgs_with_key(self, msgs: list[MsgSend], key_name: str) -> BroadcastResult:
        """Build, sign and broadcast ``msgs`` with ``key_name``.

        Errors from building, signing and transport propagate unchanged.
        """
        async with self._lock_for(key_name):
            signed = await self._builder.build_and_sign(msgs, key_name)
            return await self._broadcaster.broadcast_commit(signed)

    async def send_msg_with_key(self, msg: MsgSend, key_name: str) -> BroadcastResult:
        """Send a single message signed by ``key_name``."""
        return await self.send_msgs_with_key([msg], key_name)
