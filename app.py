"""Entry point for yokebridge

Starts the joystick capture thread and the WebSocket send/receive loops for
a chosen profile, and tears everything down on the first shutdown request.
"""
import argparse
import asyncio
import logging
import signal
from dataclasses import dataclass, replace

from core.channel import EventChannel
from core.config import load_config
from core.errors import BridgeError, ConfigurationError
from core.shutdown import ShutdownSignal
from devices.capture import CaptureLoop
from link.bridge import NetworkBridge
from link.client import ProtocolClient
from mapper import ControlAggregator

LOG = logging.getLogger("yokebridge")


@dataclass
class BridgeHandles:
    capture: CaptureLoop
    send_task: asyncio.Task
    recv_task: asyncio.Task
    client: object

    async def wait(self):
        """Wait for both loops and the capture thread; re-raise the first loop failure."""
        results = await asyncio.gather(self.send_task, self.recv_task, return_exceptions=True)
        await asyncio.get_running_loop().run_in_executor(None, self.capture.join)
        for res in results:
            if isinstance(res, BaseException):
                raise res


async def start(config, shutdown, backend=None, client=None, on_telemetry=None) -> BridgeHandles:
    """Bring up capture, link and both loops. Fatal errors propagate after shutdown is triggered."""
    loop = asyncio.get_running_loop()
    channel = EventChannel(loop, maxsize=config.queue_size)

    if backend is None:
        from devices.pygame_joystick import PygameBackend
        backend = PygameBackend()
    capture = CaptureLoop(backend, config, channel, shutdown)
    # blocks until devices are resolved; run off-loop so the loop stays responsive
    await loop.run_in_executor(None, capture.start)

    if client is None:
        try:
            client = await ProtocolClient.connect(config.ws_addr)
        except BridgeError as e:
            shutdown.trigger(f"link failed: {e}")
            await loop.run_in_executor(None, capture.join)
            raise

    bridge_kwargs = {} if on_telemetry is None else {"on_telemetry": on_telemetry}
    bridge = NetworkBridge(client, ControlAggregator(config), channel, shutdown, **bridge_kwargs)
    try:
        send_task, recv_task = await bridge.start()
    except BridgeError:
        await loop.run_in_executor(None, capture.join)
        raise
    return BridgeHandles(capture, send_task, recv_task, client)


async def run(config, backend=None, client=None) -> int:
    shutdown = ShutdownSignal()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.trigger, "interrupted")
        except (NotImplementedError, RuntimeError):
            # not available on Windows event loops; KeyboardInterrupt still ends asyncio.run
            pass

    handles = await start(config, shutdown, backend=backend, client=client)
    LOG.info("yokebridge running, press Ctrl+C to stop")
    try:
        await shutdown.wait_async()
        await handles.wait()
    finally:
        shutdown.trigger("exiting")
        if hasattr(handles.client, "close"):
            await handles.client.close()
    LOG.info("stopped (%s)", shutdown.reason)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="yokebridge: joystick/yoke → vehicle control link")
    parser.add_argument("--profile", required=True, help="YAML (or JSON) mapping profile")
    parser.add_argument("--ws-addr", default=None, help="override the profile's WebSocket address")
    parser.add_argument("--poll-ms", type=float, default=None, help="override the device poll interval")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-format", default="%(levelname)s:%(name)s:%(message)s",
                        help="Logging format string (default: %(levelname)s:%(name)s:%(message)s)")
    parser.add_argument("--debug-modules", nargs="*", default=[],
                        help="Modules to set to DEBUG level (e.g., 'capture', 'mapper', 'bridge', 'link')")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=args.log_format)
    for module in args.debug_modules:
        logging.getLogger(f"yokebridge.{module}").setLevel(logging.DEBUG)

    try:
        config = load_config(args.profile)
        if args.ws_addr:
            config = replace(config, ws_addr=args.ws_addr)
        if args.poll_ms is not None:
            if not args.poll_ms > 0:
                raise ConfigurationError(f"--poll-ms must be positive, got {args.poll_ms}")
            config = replace(config, poll_interval=args.poll_ms / 1000.0)
    except ConfigurationError as e:
        LOG.error("configuration error: %s", e)
        return 2

    try:
        return asyncio.run(run(config))
    except ConfigurationError as e:
        LOG.error("configuration error: %s", e)
        return 2
    except BridgeError as e:
        LOG.error("fatal: %s", e)
        return 1
    except KeyboardInterrupt:
        LOG.info("shutdown requested")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
