import pytest

from core.errors import ConfigurationError
from core.resolver import resolve_devices
from core.state import LogicalJoystick

DEVICES = [(0, "Yoke-Left"), (1, "Yoke-Right"), (2, "Other")]


def test_first_fit_in_declaration_order():
    table = resolve_devices(DEVICES, [LogicalJoystick("Yoke-.*"), LogicalJoystick("Yoke-.*")])
    assert table == {0: 0, 1: 1}


def test_specific_pattern_declared_later_loses_tie():
    # the greedy first pattern claims Yoke-Left, so the second must take Other
    table = resolve_devices(DEVICES, [LogicalJoystick("Yoke"), LogicalJoystick("Left|Other")])
    assert table == {0: 0, 2: 1}


def test_physical_ids_need_not_be_indices():
    table = resolve_devices([(7, "Throttle Quadrant"), (3, "Flight Yoke")],
                            [LogicalJoystick("Yoke"), LogicalJoystick("Throttle")])
    assert table == {3: 0, 7: 1}


def test_unmatched_pattern_fails():
    with pytest.raises(ConfigurationError, match="Pedals"):
        resolve_devices(DEVICES, [LogicalJoystick("Yoke-Left"), LogicalJoystick("Pedals")])


def test_consumed_device_is_not_reused():
    with pytest.raises(ConfigurationError):
        resolve_devices([(0, "Yoke")], [LogicalJoystick("Yoke"), LogicalJoystick("Yoke")])
