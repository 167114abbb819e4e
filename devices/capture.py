"""Capture loop: polls joystick hardware on a dedicated thread

`CaptureLoop` owns the device backend. It resolves configured joysticks to
physical devices once at startup, then translates raw device events into
InputEvents and pushes them onto the EventChannel until shutdown.
"""
import logging
import threading

from core.errors import BridgeError, HardwareError
from core.reader import RawAxisMotion, RawButtonDown, RawButtonUp, RawQuit
from core.resolver import resolve_devices
from core.state import AxisMotion, ButtonState

LOG = logging.getLogger("yokebridge.capture")


class CaptureLoop:
    def __init__(self, backend, config, channel, shutdown):
        self._backend = backend
        self._config = config
        self._channel = channel
        self._shutdown = shutdown
        self._t = None
        self._ready = threading.Event()
        self._startup_error = None
        self.table = {}  # physical id -> logical joystick index

    def start(self):
        """Spawn the thread and wait until devices are resolved and opened.

        Startup failures are re-raised here after shutdown has been triggered.
        """
        self._t = threading.Thread(target=self._run, name="CaptureLoop", daemon=True)
        self._t.start()
        self._ready.wait()
        if self._startup_error is not None:
            self._t.join()
            raise self._startup_error

    def join(self, timeout=None):
        if self._t:
            self._t.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._t is not None and self._t.is_alive()

    def _setup(self):
        self._backend.init()
        devices = self._backend.enumerate()
        self.table = resolve_devices(devices, self._config.joysticks)
        for physical_id in self.table:
            self._backend.open(physical_id)

    def _run(self):
        try:
            self._setup()
        except BridgeError as e:
            self._fail(e)
            return
        except Exception as e:
            self._fail(HardwareError(f"device setup failed: {e}"))
            return
        self._ready.set()
        LOG.info("capture loop running (%d device(s), poll %.0f ms)",
                 len(self.table), self._config.poll_interval * 1000)
        try:
            self._loop()
        except Exception:
            LOG.exception("capture loop failed")
            self._shutdown.trigger("capture loop failed")
        finally:
            try:
                self._backend.close()
            except Exception:
                LOG.exception("error closing device backend")
            self._channel.close()
            LOG.info("capture loop stopped")

    def _fail(self, err):
        LOG.error("capture startup failed: %s", err)
        self._startup_error = err
        self._shutdown.trigger(f"capture startup failed: {err}")
        try:
            self._backend.close()
        except Exception:
            LOG.exception("error closing device backend")
        self._ready.set()

    def _loop(self):
        while not self._shutdown.is_set():
            for raw in self._backend.poll():
                if isinstance(raw, RawQuit):
                    self._shutdown.trigger("quit requested from device layer")
                    return
                event = self.translate(raw)
                if event is None:
                    continue
                if not self._channel.put_blocking(event, self._shutdown):
                    return
            # wakes early on shutdown
            self._shutdown.wait(self._config.poll_interval)

    def translate(self, raw):
        joystick = self.table.get(raw.which)
        if joystick is None:
            LOG.debug("event from unresolved device %d dropped", raw.which)
            return None
        if isinstance(raw, RawAxisMotion):
            return AxisMotion(joystick, raw.axis, raw.value)
        if isinstance(raw, RawButtonDown):
            return ButtonState(joystick, raw.button, True)
        if isinstance(raw, RawButtonUp):
            return ButtonState(joystick, raw.button, False)
        return None
