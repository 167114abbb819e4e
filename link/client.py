"""WebSocket protocol client for the vehicle link"""
import asyncio
import logging

import websockets

from core.errors import TransportError
from link.messages import decode_inbound

LOG = logging.getLogger("yokebridge.link")


class ProtocolClient:
    """Thin wrapper over a websockets connection speaking the link protocol.

    `recv` returns None once the connection is closed; every other failure
    surfaces as TransportError. Reconnection is not attempted here.
    """

    def __init__(self, ws):
        self._ws = ws

    @classmethod
    async def connect(cls, addr: str) -> "ProtocolClient":
        LOG.info("connecting to %s", addr)
        try:
            ws = await websockets.connect(addr, ping_interval=None)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise TransportError(f"couldn't open WebSocket connection with {addr}: {e}") from e
        LOG.info("opened WebSocket connection with %s", addr)
        return cls(ws)

    async def send(self, msg):
        try:
            await self._ws.send(msg.pack())
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise TransportError(f"send failed: {e}") from e

    async def recv(self):
        while True:
            try:
                data = await self._ws.recv()
            except websockets.exceptions.ConnectionClosed as e:
                LOG.info("WebSocket connection closed (%s)", e)
                return None
            except OSError as e:
                raise TransportError(f"receive failed: {e}") from e
            if isinstance(data, str):
                LOG.debug("ignoring text frame %r", data[:64])
                continue
            msg = decode_inbound(data)
            if msg is None:
                LOG.debug("ignoring frame with unknown tag 0x%02x", data[0])
                continue
            return msg

    async def close(self):
        await self._ws.close()
