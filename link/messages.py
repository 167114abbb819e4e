"""Link protocol message classes

Binary frames, little-endian: one tag byte, then a fixed-size body.

Outbound (bridge -> vehicle):
- DeclareInterest (0x00): which telemetry streams we want
- Controls (0x01): full control snapshot

Inbound (vehicle -> bridge):
- MotorSpeed (0x10): one motor's current speed
"""
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from core.errors import TransportError
from core.state import THROTTLE_SPLITS, ControlSnapshot, FlightMode

TAG_DECLARE_INTEREST = 0x00
TAG_CONTROLS = 0x01
TAG_MOTOR_SPEED = 0x10

_DECLARE_INTEREST = struct.Struct("<???")
_CONTROLS = struct.Struct("<10fBBHH")
_MOTOR_SPEED = struct.Struct("<Bf")


def _bits(flags) -> int:
    out = 0
    for i, on in enumerate(flags):
        if on:
            out |= 1 << i
    return out


def _flags(bits: int, count: int) -> Tuple[bool, ...]:
    return tuple(bool((bits >> i) & 1) for i in range(count))


@dataclass(frozen=True)
class DeclareInterest:
    motors: bool = True
    servos: bool = False
    sensors: bool = False

    def pack(self) -> bytes:
        return bytes([TAG_DECLARE_INTEREST]) + _DECLARE_INTEREST.pack(self.motors, self.servos, self.sensors)


@dataclass(frozen=True)
class Controls:
    """Control snapshot as sent over the link."""
    throttle: float
    throttle_split: Tuple[float, ...]
    sideways: float
    elevation: float
    pitch: float
    roll: float
    yaw: float
    flight_mode: FlightMode
    motors_toggles: Tuple[bool, ...]
    motors_reverse: Tuple[bool, ...]

    @classmethod
    def from_snapshot(cls, snap: ControlSnapshot) -> "Controls":
        return cls(
            snap.throttle, snap.throttle_split, snap.sideways, snap.elevation,
            snap.pitch, snap.roll, snap.yaw, snap.flight_mode,
            snap.motors_toggles, snap.motors_reverse,
        )

    def pack(self) -> bytes:
        body = _CONTROLS.pack(
            self.throttle, *self.throttle_split, self.sideways, self.elevation,
            self.pitch, self.roll, self.yaw,
            int(self.flight_mode), len(self.motors_toggles),
            _bits(self.motors_toggles), _bits(self.motors_reverse),
        )
        return bytes([TAG_CONTROLS]) + body

    @classmethod
    def unpack(cls, data: bytes) -> "Controls":
        try:
            fields = _CONTROLS.unpack(data[1:])
        except struct.error as e:
            raise TransportError(f"malformed Controls frame ({len(data)} bytes): {e}") from e
        floats, (mode, motors, toggles, reverse) = fields[:10], fields[10:]
        return cls(
            floats[0], tuple(floats[1:1 + THROTTLE_SPLITS]), *floats[1 + THROTTLE_SPLITS:],
            FlightMode(mode), _flags(toggles, motors), _flags(reverse, motors),
        )


@dataclass(frozen=True)
class MotorSpeed:
    id: int
    speed: float

    def pack(self) -> bytes:
        return bytes([TAG_MOTOR_SPEED]) + _MOTOR_SPEED.pack(self.id, self.speed)


def decode_inbound(data: bytes) -> Optional[object]:
    """Decode a vehicle->bridge frame. Unknown tags decode to None."""
    if not data:
        raise TransportError("empty frame")
    tag = data[0]
    if tag == TAG_MOTOR_SPEED:
        try:
            motor, speed = _MOTOR_SPEED.unpack(data[1:])
        except struct.error as e:
            raise TransportError(f"malformed MotorSpeed frame ({len(data)} bytes): {e}") from e
        return MotorSpeed(motor, speed)
    return None
