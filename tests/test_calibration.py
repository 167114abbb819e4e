import pytest

from core.calibration import evaluate, segment_index, validate_keypoints
from core.errors import ConfigurationError
from core.state import AxisKeypoint as K

LINEAR = (K(0, 0.0), K(100, 1.0))
CURVE = (K(-32768, -1.0), K(-1000, 0.0), K(1000, 0.0), K(32767, 1.0))


@pytest.mark.parametrize("raw,expected", [(50, 0.5), (0, 0.0), (100, 1.0), (150, 1.5), (-50, -0.5)])
def test_two_keypoints(raw, expected):
    assert evaluate(LINEAR, raw) == pytest.approx(expected)


def test_exact_keypoints_are_exact():
    kps = (K(-100, 0.1), K(0, 0.7), K(100, 0.3))
    for kp in kps:
        assert evaluate(kps, kp.raw) == kp.value


def test_interior_segments():
    # deadzone between -1000 and 1000
    assert evaluate(CURVE, 0) == 0.0
    assert evaluate(CURVE, 500) == 0.0
    assert evaluate(CURVE, (1000 + 32767) // 2) == pytest.approx(0.5, abs=1e-4)
    assert evaluate(CURVE, -16884) == pytest.approx(-0.5, abs=1e-4)


def test_segment_index_clamped_to_last_segment():
    assert segment_index(CURVE, 32767) == 2
    assert segment_index(CURVE, -32768) == 0
    assert segment_index(LINEAR, 10**6) == 0


def test_extrapolates_past_last_keypoint_with_final_slope():
    kps = (K(0, 0.0), K(10, 1.0), K(20, 3.0))
    assert evaluate(kps, 30) == pytest.approx(5.0)


def test_full_range_midpoint():
    kps = (K(-32768, 0.0), K(32767, 1.0))
    assert evaluate(kps, 0) == pytest.approx(0.5, abs=1e-4)


@pytest.mark.parametrize("kps", [
    (),
    (K(0, 0.0),),
    (K(0, 0.0), K(0, 1.0)),
    (K(10, 0.0), K(5, 1.0)),
    (K(0, 0.0), K(40000, 1.0)),
])
def test_invalid_keypoints(kps):
    with pytest.raises(ConfigurationError):
        validate_keypoints(kps)
