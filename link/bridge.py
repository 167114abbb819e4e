"""Network bridge: send control snapshots, receive telemetry

After a one-time DeclareInterest handshake two tasks run side by side:

- send loop: InputEvent -> ControlAggregator -> Controls frame
- receive loop: inbound frames -> telemetry callback

Both race their next unit of work against the shared shutdown signal, and
both trigger it on a fatal error or when their stream ends.
"""
import asyncio
import logging
import time

from core.errors import TransportError
from core.shutdown import SHUTDOWN, TIMEOUT
from core.state import RepeatTick
from link.messages import Controls, DeclareInterest, MotorSpeed

LOG = logging.getLogger("yokebridge.bridge")


def log_telemetry(msg):
    if isinstance(msg, MotorSpeed):
        LOG.info("motor %d speed %.3f", msg.id, msg.speed)
    else:
        LOG.info("telemetry %r", msg)


class NetworkBridge:
    def __init__(self, client, aggregator, channel, shutdown,
                 interest=None, on_telemetry=log_telemetry, clock=time.monotonic):
        self._client = client
        self._aggregator = aggregator
        self._channel = channel
        self._shutdown = shutdown
        self._interest = interest or DeclareInterest(motors=True, servos=False, sensors=False)
        self._on_telemetry = on_telemetry
        self._clock = clock
        self.sent = 0

    async def start(self):
        """Send the handshake, then spawn and return (send_task, recv_task)."""
        try:
            await self._client.send(self._interest)
        except TransportError as e:
            self._shutdown.trigger(f"handshake failed: {e}")
            raise
        LOG.info("declared interest %s", self._interest)
        send_task = asyncio.create_task(self._send_loop(), name="send-loop")
        recv_task = asyncio.create_task(self._recv_loop(), name="recv-loop")
        return send_task, recv_task

    def _repeat_timeout(self):
        deadline = self._aggregator.next_repeat_deadline()
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    async def _send_loop(self):
        try:
            await self._send_events()
        except TransportError as e:
            LOG.error("send loop failed: %s", e)
            self._shutdown.trigger(f"send failed: {e}")
            raise
        except Exception as e:
            LOG.exception("send loop crashed")
            self._shutdown.trigger(f"send loop crashed: {e!r}")
            raise
        LOG.info("send loop stopped after %d snapshot(s)", self.sent)

    async def _send_events(self):
        while True:
            event = await self._shutdown.race(self._channel.get(), timeout=self._repeat_timeout())
            if event is SHUTDOWN:
                break
            if event is TIMEOUT:
                event = RepeatTick(self._clock())
            elif event is None:
                LOG.info("input channel closed")
                break
            snapshot = self._aggregator.process(event)
            await self._client.send(Controls.from_snapshot(snapshot))
            self.sent += 1

    async def _recv_loop(self):
        try:
            await self._recv_messages()
        except TransportError as e:
            LOG.error("receive loop failed: %s", e)
            self._shutdown.trigger(f"receive failed: {e}")
            raise
        except Exception as e:
            LOG.exception("receive loop crashed")
            self._shutdown.trigger(f"receive loop crashed: {e!r}")
            raise
        LOG.info("receive loop stopped")

    async def _recv_messages(self):
        while True:
            msg = await self._shutdown.race(self._client.recv())
            if msg is SHUTDOWN:
                break
            if msg is None:
                LOG.warning("WebSocket connection closed!")
                self._shutdown.trigger("remote closed the connection")
                break
            self._on_telemetry(msg)
