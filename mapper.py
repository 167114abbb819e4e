"""Mapping engine: reduce InputEvents into ControlSnapshots

The aggregator is owned by the network send task and never shared, so it
keeps its axis values and button state without any locking.
"""
import logging
import time
from typing import Dict

from core.buttons import ButtonDispatcher
from core.calibration import evaluate
from core.state import AxisMotion, BridgeConfig, ButtonState, ControlSnapshot, LogicalAxis, RepeatTick

LOG = logging.getLogger("yokebridge.mapper")


class ControlAggregator:
    def __init__(self, config: BridgeConfig, clock=time.monotonic):
        self.config = config
        self._axes: Dict[LogicalAxis, float] = {}
        self._buttons = ButtonDispatcher(config.motors, clock=clock)

    def _joystick(self, idx):
        if 0 <= idx < len(self.config.joysticks):
            return self.config.joysticks[idx]
        return None

    def process(self, event) -> ControlSnapshot:
        """Apply one event and return the full resulting snapshot."""
        if isinstance(event, AxisMotion):
            self._on_axis(event)
        elif isinstance(event, ButtonState):
            self._on_button(event)
        elif isinstance(event, RepeatTick):
            self._buttons.tick(event.now)
        else:
            LOG.warning("unknown input event %r ignored", event)
        return self.snapshot()

    def _on_axis(self, event: AxisMotion):
        joy = self._joystick(event.joystick)
        entry = joy.axes.get(event.axis) if joy else None
        if entry is None:
            LOG.debug("unmapped axis %d on joystick %d", event.axis, event.joystick)
            return
        val = evaluate(entry.keypoints, event.value)
        self._axes[entry.axis] = val
        LOG.debug("axis %d/%d raw %d -> %s = %.4f", event.joystick, event.axis, event.value, entry.axis, val)

    def _on_button(self, event: ButtonState):
        joy = self._joystick(event.joystick)
        entry = joy.buttons.get(event.button) if joy else None
        if entry is None:
            LOG.debug("unmapped button %d on joystick %d", event.button, event.joystick)
            return
        self._buttons.handle(event.joystick, event.button, entry, event.pressed)

    def next_repeat_deadline(self):
        return self._buttons.next_deadline()

    def snapshot(self) -> ControlSnapshot:
        st = self._buttons.state
        return ControlSnapshot.build(self._axes, st.flight_mode, st.motors_toggles, st.motors_reverse)
