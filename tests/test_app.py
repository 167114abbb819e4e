import asyncio

import pytest

from app import main, run, start
from conftest import FakeBackend, FakeClient
from core.errors import ConfigurationError, TransportError
from core.reader import RawAxisMotion, RawButtonDown, RawQuit
from core.shutdown import ShutdownSignal
from core.state import FlightMode
from link.messages import Controls, DeclareInterest, MotorSpeed


def test_start_wires_capture_to_link(config):
    backend = FakeBackend(
        devices=[(0, "Gamepad"), (1, "Flight Yoke")],
        batches=[[RawAxisMotion(1, 1, 0)], [RawButtonDown(1, 0)]],
    )

    async def main_():
        shutdown = ShutdownSignal()
        client = FakeClient()
        telemetry = []
        handles = await start(config, shutdown, backend=backend, client=client, on_telemetry=telemetry.append)
        while len(client.sent) < 3:
            await asyncio.sleep(0.01)
        await client.inbound.put(MotorSpeed(0, 12.5))
        await client.inbound.put(None)  # remote hangs up
        await asyncio.wait_for(handles.wait(), 2.0)
        return client.sent, telemetry, shutdown

    sent, telemetry, shutdown = asyncio.run(main_())
    assert sent[0] == DeclareInterest()
    assert isinstance(sent[1], Controls)
    assert sent[1].throttle == pytest.approx(0.5, abs=1e-4)
    assert sent[1].flight_mode == FlightMode.MANUAL
    assert sent[2].flight_mode == FlightMode.ATTI
    assert telemetry == [MotorSpeed(0, 12.5)]
    assert shutdown.reason == "remote closed the connection"
    assert backend.closed


def test_run_stops_on_device_quit(config):
    backend = FakeBackend(devices=[(0, "Yoke")], batches=[[RawQuit()]])

    async def main_():
        client = FakeClient()
        code = await asyncio.wait_for(run(config, backend=backend, client=client), 2.0)
        return code, client

    code, client = asyncio.run(main_())
    assert code == 0
    assert client.closed


def test_start_fails_before_link_when_device_missing(config):
    client = FakeClient()

    async def main_():
        shutdown = ShutdownSignal()
        try:
            await start(config, shutdown, backend=FakeBackend(devices=[(0, "Pedals")]), client=client)
        finally:
            assert shutdown.is_set()

    with pytest.raises(ConfigurationError):
        asyncio.run(main_())
    assert client.sent == []


def test_handshake_failure_stops_capture(config):
    backend = FakeBackend(devices=[(0, "Yoke")])

    async def main_():
        shutdown = ShutdownSignal()
        await start(config, shutdown, backend=backend, client=FakeClient(fail_send_after=0))

    with pytest.raises(TransportError):
        asyncio.run(main_())
    assert backend.closed


def test_main_reports_bad_profile(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("joys: []\n", encoding="utf-8")
    assert main(["--profile", str(path)]) == 2


def test_failing_telemetry_consumer_tears_everything_down(config):
    backend = FakeBackend(devices=[(0, "Yoke")])

    def consumer(msg):
        raise ValueError("consumer failed")

    async def main_():
        shutdown = ShutdownSignal()
        client = FakeClient()
        handles = await start(config, shutdown, backend=backend, client=client, on_telemetry=consumer)
        await client.inbound.put(MotorSpeed(0, 1.0))
        with pytest.raises(ValueError):
            await asyncio.wait_for(handles.wait(), 2.0)
        return shutdown, handles

    shutdown, handles = asyncio.run(main_())
    assert shutdown.is_set()
    assert handles.send_task.done()
    assert not handles.capture.is_alive()
    assert backend.closed


@pytest.mark.parametrize("poll_ms", ["0", "-5", "nan"])
def test_main_rejects_non_positive_poll_interval(tmp_path, poll_ms):
    path = tmp_path / "profile.yaml"
    path.write_text(
        "ws_addr: ws://127.0.0.1:8765\n"
        "joys:\n"
        "  - name_regex: Yoke\n"
        "    axes:\n"
        "      1: {axis: Throttle, keypoints: [[-32768, 0.0], [32767, 1.0]]}\n",
        encoding="utf-8",
    )
    assert main(["--profile", str(path), f"--poll-ms={poll_ms}"]) == 2
