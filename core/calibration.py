"""Piecewise-linear axis calibration

A calibrated axis owns a sorted keypoint list [(raw, value), ...]; consecutive
keypoints form linear segments. Samples outside the first/last keypoint are
extrapolated with the slope of the outermost segment, not clamped.
"""
from bisect import bisect_left
from typing import Sequence

from core.errors import ConfigurationError
from core.state import AxisKeypoint

INT16_MIN = -32768
INT16_MAX = 32767


def validate_keypoints(keypoints: Sequence[AxisKeypoint]):
    """Raise ConfigurationError unless keypoints form a usable curve."""
    if len(keypoints) < 2:
        raise ConfigurationError(f"axis needs at least two keypoints, got {len(keypoints)}")
    for raw, _ in keypoints:
        if not INT16_MIN <= raw <= INT16_MAX:
            raise ConfigurationError(f"keypoint raw sample {raw} outside signed 16-bit range")
    for prev, cur in zip(keypoints, keypoints[1:]):
        if cur.raw <= prev.raw:
            raise ConfigurationError(
                f"keypoint raw samples must be strictly increasing ({prev.raw} then {cur.raw})"
            )


def segment_index(keypoints: Sequence[AxisKeypoint], raw: int) -> int:
    # first i with keypoints[i + 1].raw >= raw, capped at the last segment
    i = bisect_left([kp.raw for kp in keypoints[1:]], raw)
    return min(i, len(keypoints) - 2)


def evaluate(keypoints: Sequence[AxisKeypoint], raw: int) -> float:
    i = segment_index(keypoints, raw)
    lo, hi = keypoints[i], keypoints[i + 1]
    if raw == hi.raw:
        return hi.value
    return lo.value + (raw - lo.raw) / (hi.raw - lo.raw) * (hi.value - lo.value)
