import asyncio

import pytest

from core.errors import HardwareError, TransportError
from core.reader import DeviceBackend
from core.state import (
    THROTTLE,
    AxisKeypoint,
    AxisMappingEntry,
    BridgeConfig,
    ButtonAction,
    ButtonFunction,
    ButtonMappingEntry,
    LogicalJoystick,
)


class FakeBackend(DeviceBackend):
    """Scripted device layer: `batches` are returned by successive polls."""

    def __init__(self, devices=(), batches=(), fail_init=False, fail_open=(), fail_close=False):
        self.devices = list(devices)
        self.batches = list(batches)
        self.fail_init = fail_init
        self.fail_open = set(fail_open)
        self.fail_close = fail_close
        self.opened = []
        self.polls = 0
        self.closed = False

    def init(self):
        if self.fail_init:
            raise HardwareError("no joystick subsystem")

    def enumerate(self):
        return list(self.devices)

    def open(self, physical_id):
        if physical_id in self.fail_open:
            raise HardwareError(f"cannot open {physical_id}")
        self.opened.append(physical_id)

    def poll(self):
        self.polls += 1
        if self.batches:
            return self.batches.pop(0)
        return []

    def close(self):
        self.closed = True
        if self.fail_close:
            raise HardwareError("device vanished")


class FakeClient:
    """In-memory protocol client; inbound messages come from an asyncio.Queue."""

    def __init__(self, fail_send_after=None):
        self.sent = []
        self.inbound = asyncio.Queue()
        self.fail_send_after = fail_send_after
        self.closed = False

    async def send(self, msg):
        if self.fail_send_after is not None and len(self.sent) >= self.fail_send_after:
            raise TransportError("link down")
        self.sent.append(msg)

    async def recv(self):
        return await self.inbound.get()

    async def close(self):
        self.closed = True


def yoke_config(**kwargs):
    joy = LogicalJoystick(
        "Yoke",
        axes={1: AxisMappingEntry(THROTTLE, (AxisKeypoint(-32768, 0.0), AxisKeypoint(32767, 1.0)))},
        buttons={0: ButtonMappingEntry(ButtonFunction(ButtonAction.FLIGHT_MODE_CYCLE))},
    )
    kwargs.setdefault("poll_interval", 0.01)
    return BridgeConfig(ws_addr="ws://127.0.0.1:8765", joysticks=(joy,), **kwargs)


@pytest.fixture
def config():
    return yoke_config()
