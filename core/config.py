"""Load YAML mapping profiles into an immutable BridgeConfig

Enum values follow the externally-tagged form of the original config.json:
a bare string for unit variants ("Throttle", "FlightModeCycle", "OnlyPress")
and a one-key mapping for variants with data ({"ThrottleSplit": 2},
{"MotorToggle": 1}, {"Repeat": 0.25}). JSON files load unchanged.

Example:

    ws_addr: ws://127.0.0.1:8765
    motors: 4
    joys:
      - name_regex: "Yoke"
        axes:
          1: {axis: Throttle, keypoints: [[-32768, 0.0], [32767, 1.0]]}
        buttons:
          0: {function: FlightModeCycle, style: OnlyPress}
"""
import logging
import re

import yaml

from core.calibration import validate_keypoints
from core.errors import ConfigurationError
from core.state import (
    THROTTLE_SPLITS,
    AxisKeypoint,
    AxisKind,
    AxisMappingEntry,
    BridgeConfig,
    ButtonAction,
    ButtonFunction,
    ButtonMappingEntry,
    ButtonStyle,
    LogicalAxis,
    LogicalJoystick,
    Trigger,
)

LOG = logging.getLogger("yokebridge.config")

DEFAULT_WS_ADDR = "ws://127.0.0.1:8765"

_AXIS_NAMES = {
    "Throttle": AxisKind.THROTTLE,
    "ThrottleSplit": AxisKind.THROTTLE_SPLIT,
    "Sideways": AxisKind.SIDEWAYS,
    "Elevation": AxisKind.ELEVATION,
    "Pitch": AxisKind.PITCH,
    "Roll": AxisKind.ROLL,
    "Yaw": AxisKind.YAW,
}


def _variant(value, what):
    """Split an externally tagged enum value into (tag, payload)."""
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value.items()))
    raise ConfigurationError(f"invalid {what}: {value!r}")


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _index(key, what):
    try:
        idx = int(key)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{what} index must be an integer, got {key!r}") from None
    if not 0 <= idx <= 255:
        raise ConfigurationError(f"{what} index {idx} outside 0..255")
    return idx


def parse_axis(value) -> LogicalAxis:
    tag, payload = _variant(value, "axis")
    kind = _AXIS_NAMES.get(tag)
    if kind is None:
        raise ConfigurationError(f"unknown axis {tag!r}")
    if kind == AxisKind.THROTTLE_SPLIT:
        if not _is_int(payload) or not 0 <= payload < THROTTLE_SPLITS:
            raise ConfigurationError(f"ThrottleSplit needs an index 0..{THROTTLE_SPLITS - 1}, got {payload!r}")
        return LogicalAxis(kind, payload)
    if payload is not None:
        raise ConfigurationError(f"axis {tag} takes no parameter")
    return LogicalAxis(kind)


def parse_keypoints(value):
    try:
        pairs = [(raw, float(val)) for raw, val in value]
    except (TypeError, ValueError):
        raise ConfigurationError(f"keypoints must be a list of [raw, value] pairs, got {value!r}") from None
    for raw, _ in pairs:
        if not _is_int(raw):
            raise ConfigurationError(f"keypoint raw sample must be an integer, got {raw!r}")
    kps = tuple(AxisKeypoint(raw, val) for raw, val in pairs)
    validate_keypoints(kps)
    return kps


def parse_function(value, motors) -> ButtonFunction:
    tag, payload = _variant(value, "button function")
    try:
        action = ButtonAction(tag)
    except ValueError:
        raise ConfigurationError(f"unknown button function {tag!r}") from None
    if action == ButtonAction.FLIGHT_MODE_CYCLE:
        if payload is not None:
            raise ConfigurationError("FlightModeCycle takes no parameter")
        return ButtonFunction(action)
    if not _is_int(payload) or not 0 <= payload < motors:
        raise ConfigurationError(f"{tag} needs a motor index 0..{motors - 1}, got {payload!r}")
    return ButtonFunction(action, payload)


def parse_style(value) -> ButtonStyle:
    if value is None:
        return ButtonStyle()
    tag, payload = _variant(value, "button style")
    try:
        trigger = Trigger(tag)
    except ValueError:
        raise ConfigurationError(f"unknown button style {tag!r}") from None
    if trigger == Trigger.REPEAT:
        if not isinstance(payload, (int, float)) or payload <= 0:
            raise ConfigurationError(f"Repeat needs a positive period in seconds, got {payload!r}")
        return ButtonStyle(trigger, float(payload))
    if payload is not None:
        raise ConfigurationError(f"button style {tag} takes no parameter")
    return ButtonStyle(trigger)


def parse_joystick(data, motors) -> LogicalJoystick:
    if not isinstance(data, dict) or "name_regex" not in data:
        raise ConfigurationError(f"joystick entry needs a name_regex: {data!r}")
    try:
        re.compile(data["name_regex"])
    except (re.error, TypeError) as e:
        raise ConfigurationError(f"bad name_regex {data['name_regex']!r}: {e}") from e

    axes = {}
    for key, entry in (data.get("axes") or {}).items():
        if not isinstance(entry, dict) or "axis" not in entry or "keypoints" not in entry:
            raise ConfigurationError(f"axis {key!r} needs 'axis' and 'keypoints'")
        axes[_index(key, "axis")] = AxisMappingEntry(parse_axis(entry["axis"]), parse_keypoints(entry["keypoints"]))

    buttons = {}
    for key, entry in (data.get("buttons") or {}).items():
        if not isinstance(entry, dict) or "function" not in entry:
            raise ConfigurationError(f"button {key!r} needs a 'function'")
        buttons[_index(key, "button")] = ButtonMappingEntry(
            parse_function(entry["function"], motors), parse_style(entry.get("style"))
        )
    return LogicalJoystick(data["name_regex"], axes, buttons)


def parse_config(data) -> BridgeConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("profile must be a mapping")
    motors = data.get("motors", 4)
    if not _is_int(motors) or not 0 < motors <= 16:
        raise ConfigurationError(f"motors must be 1..16, got {motors!r}")
    joys = data.get("joys")
    if not joys:
        raise ConfigurationError("profile declares no joysticks ('joys')")
    poll_ms = data.get("poll_interval_ms", 50)
    queue_size = data.get("queue_size", 128)
    if not isinstance(poll_ms, (int, float)) or isinstance(poll_ms, bool) or not poll_ms > 0:
        raise ConfigurationError(f"poll_interval_ms must be positive, got {poll_ms!r}")
    if not _is_int(queue_size) or queue_size <= 0:
        raise ConfigurationError(f"queue_size must be a positive integer, got {queue_size!r}")
    return BridgeConfig(
        ws_addr=str(data.get("ws_addr", DEFAULT_WS_ADDR)),
        joysticks=tuple(parse_joystick(j, motors) for j in joys),
        motors=motors,
        poll_interval=poll_ms / 1000.0,
        queue_size=queue_size,
    )


def load_config(path: str) -> BridgeConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read profile {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"cannot parse profile {path}: {e}") from e
    config = parse_config(data)
    LOG.info("loaded profile %s: %d joystick(s), %d motor(s), link %s",
             path, len(config.joysticks), config.motors, config.ws_addr)
    return config
