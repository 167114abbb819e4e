"""State models and lightweight DTOs"""
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, NamedTuple, Optional, Tuple, Union

THROTTLE_SPLITS = 4


class AxisKind(IntEnum):
    THROTTLE = 0
    THROTTLE_SPLIT = 1
    SIDEWAYS = 2
    ELEVATION = 3
    PITCH = 4
    ROLL = 5
    YAW = 6


@dataclass(frozen=True, order=True)
class LogicalAxis:
    """Steering axis of the vehicle. Only THROTTLE_SPLIT uses `index` (0..3)."""
    kind: AxisKind
    index: int = 0

    def __str__(self):
        if self.kind == AxisKind.THROTTLE_SPLIT:
            return f"ThrottleSplit({self.index})"
        return self.kind.name.title()


THROTTLE = LogicalAxis(AxisKind.THROTTLE)
SIDEWAYS = LogicalAxis(AxisKind.SIDEWAYS)
ELEVATION = LogicalAxis(AxisKind.ELEVATION)
PITCH = LogicalAxis(AxisKind.PITCH)
ROLL = LogicalAxis(AxisKind.ROLL)
YAW = LogicalAxis(AxisKind.YAW)


def throttle_split(index: int) -> LogicalAxis:
    return LogicalAxis(AxisKind.THROTTLE_SPLIT, index)


class AxisKeypoint(NamedTuple):
    raw: int  # signed 16-bit sample
    value: float


@dataclass(frozen=True)
class AxisMappingEntry:
    axis: LogicalAxis
    keypoints: Tuple[AxisKeypoint, ...]


class ButtonAction(Enum):
    FLIGHT_MODE_CYCLE = "FlightModeCycle"
    MOTOR_TOGGLE = "MotorToggle"
    MOTOR_REVERSE = "MotorReverse"


@dataclass(frozen=True)
class ButtonFunction:
    action: ButtonAction
    motor: Optional[int] = None


class Trigger(Enum):
    ONLY_PRESS = "OnlyPress"
    ONLY_RELEASE = "OnlyRelease"
    PRESS_AND_RELEASE = "PressAndRelease"
    REPEAT = "Repeat"


@dataclass(frozen=True)
class ButtonStyle:
    trigger: Trigger = Trigger.ONLY_PRESS
    period: Optional[float] = None  # seconds, REPEAT only

    def fires_on(self, pressed: bool) -> bool:
        if self.trigger == Trigger.PRESS_AND_RELEASE:
            return True
        if self.trigger == Trigger.ONLY_RELEASE:
            return not pressed
        return pressed


ONLY_PRESS = ButtonStyle()


@dataclass(frozen=True)
class ButtonMappingEntry:
    function: ButtonFunction
    style: ButtonStyle = ONLY_PRESS


@dataclass(frozen=True)
class LogicalJoystick:
    """One configured virtual device, matched to a physical one by name."""
    name_regex: str
    axes: Dict[int, AxisMappingEntry] = field(default_factory=dict)
    buttons: Dict[int, ButtonMappingEntry] = field(default_factory=dict)
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "pattern", re.compile(self.name_regex))

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None


@dataclass(frozen=True)
class BridgeConfig:
    ws_addr: str
    joysticks: Tuple[LogicalJoystick, ...]
    motors: int = 4
    poll_interval: float = 0.05  # seconds between device polls
    queue_size: int = 128


# Input events produced by the capture thread and consumed by the aggregator

@dataclass(frozen=True)
class AxisMotion:
    joystick: int
    axis: int
    value: int


@dataclass(frozen=True)
class ButtonState:
    joystick: int
    button: int
    pressed: bool


@dataclass(frozen=True)
class RepeatTick:
    """Internal timer event re-firing held repeat-style buttons."""
    now: float


InputEvent = Union[AxisMotion, ButtonState, RepeatTick]


class FlightMode(IntEnum):
    MANUAL = 0
    ATTI = 1
    ALTI_ATTI = 2

    def next(self) -> "FlightMode":
        return FlightMode((self + 1) % len(FlightMode))


@dataclass(frozen=True)
class ControlSnapshot:
    throttle: float = 0.0
    throttle_split: Tuple[float, ...] = (0.0,) * THROTTLE_SPLITS
    sideways: float = 0.0
    elevation: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0
    flight_mode: FlightMode = FlightMode.MANUAL
    motors_toggles: Tuple[bool, ...] = ()
    motors_reverse: Tuple[bool, ...] = ()

    @classmethod
    def build(cls, axes: Dict[LogicalAxis, float], flight_mode, toggles, reverse):
        """Assemble a snapshot; axes never set read as 0.0."""
        return cls(
            throttle=axes.get(THROTTLE, 0.0),
            throttle_split=tuple(axes.get(throttle_split(i), 0.0) for i in range(THROTTLE_SPLITS)),
            sideways=axes.get(SIDEWAYS, 0.0),
            elevation=axes.get(ELEVATION, 0.0),
            pitch=axes.get(PITCH, 0.0),
            roll=axes.get(ROLL, 0.0),
            yaw=axes.get(YAW, 0.0),
            flight_mode=flight_mode,
            motors_toggles=tuple(toggles),
            motors_reverse=tuple(reverse),
        )
