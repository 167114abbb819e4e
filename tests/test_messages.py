import struct

import pytest

from core.errors import TransportError
from core.state import ControlSnapshot, FlightMode
from link.messages import Controls, DeclareInterest, MotorSpeed, decode_inbound


def test_declare_interest_frame():
    assert DeclareInterest(motors=True).pack() == bytes([0x00, 1, 0, 0])


def test_controls_frame_carries_snapshot():
    snap = ControlSnapshot(
        throttle=0.5, throttle_split=(0.25, 0.0, 0.0, -0.25), yaw=-1.0,
        flight_mode=FlightMode.ALTI_ATTI,
        motors_toggles=(True, False, True, False), motors_reverse=(False, False, False, True),
    )
    frame = Controls.from_snapshot(snap).pack()

    assert frame[0] == 0x01
    assert len(frame) == 1 + struct.calcsize("<10fBBHH")
    decoded = Controls.unpack(frame)
    assert decoded.throttle == pytest.approx(0.5)
    assert decoded.throttle_split == pytest.approx((0.25, 0.0, 0.0, -0.25))
    assert decoded.yaw == pytest.approx(-1.0)
    assert decoded.flight_mode == FlightMode.ALTI_ATTI
    assert decoded.motors_toggles == (True, False, True, False)
    assert decoded.motors_reverse == (False, False, False, True)


def test_decode_motor_speed():
    msg = decode_inbound(MotorSpeed(2, 0.75).pack())
    assert msg.id == 2
    assert msg.speed == pytest.approx(0.75)


def test_unknown_tag_decodes_to_none():
    assert decode_inbound(bytes([0x7F, 1, 2, 3])) is None


def test_truncated_frames_raise():
    with pytest.raises(TransportError):
        decode_inbound(bytes([0x10, 1]))
    with pytest.raises(TransportError):
        decode_inbound(b"")
