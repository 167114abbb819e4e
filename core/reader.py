"""Base device backend abstraction

A backend wraps the OS joystick layer. It is used only from the capture
thread: `init`, `enumerate` and `open` once at startup, then `poll` in a loop.
`poll` must not block; it returns whatever events are pending.
"""
import abc
from dataclasses import dataclass
from typing import List, Tuple, Union


@dataclass(frozen=True)
class RawAxisMotion:
    which: int  # physical id reported by the OS for an opened device
    axis: int
    value: int  # signed 16-bit


@dataclass(frozen=True)
class RawButtonDown:
    which: int
    button: int


@dataclass(frozen=True)
class RawButtonUp:
    which: int
    button: int


@dataclass(frozen=True)
class RawQuit:
    pass


RawDeviceEvent = Union[RawAxisMotion, RawButtonDown, RawButtonUp, RawQuit]


class DeviceBackend(abc.ABC):
    @abc.abstractmethod
    def init(self):
        """Bring up the joystick subsystem; raise HardwareError on failure."""
        raise NotImplementedError

    @abc.abstractmethod
    def enumerate(self) -> List[Tuple[int, str]]:
        """Return (physical_id, name) for every attached device, in OS order."""
        raise NotImplementedError

    @abc.abstractmethod
    def open(self, physical_id: int):
        """Open a device so its events show up in `poll`; raise HardwareError on failure."""
        raise NotImplementedError

    @abc.abstractmethod
    def poll(self) -> List[RawDeviceEvent]:
        raise NotImplementedError

    @abc.abstractmethod
    def close(self):
        raise NotImplementedError
