"""Button edge interpretation: flight-mode cycling and motor toggle/reverse"""
import logging
import time
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from core.state import ONLY_PRESS, ButtonAction, ButtonMappingEntry, ButtonStyle, FlightMode, Trigger

LOG = logging.getLogger("yokebridge.buttons")


@dataclass(frozen=True)
class DiscreteState:
    flight_mode: FlightMode = FlightMode.MANUAL
    motors_toggles: Tuple[bool, ...] = ()
    motors_reverse: Tuple[bool, ...] = ()

    @classmethod
    def initial(cls, motors: int):
        return cls(FlightMode.MANUAL, (False,) * motors, (False,) * motors)


def _flip(flags, idx):
    return flags[:idx] + (not flags[idx],) + flags[idx + 1:]


def apply_action(state: DiscreteState, function) -> DiscreteState:
    if function.action == ButtonAction.FLIGHT_MODE_CYCLE:
        return replace(state, flight_mode=state.flight_mode.next())
    if function.action == ButtonAction.MOTOR_TOGGLE:
        return replace(state, motors_toggles=_flip(state.motors_toggles, function.motor))
    if function.action == ButtonAction.MOTOR_REVERSE:
        return replace(state, motors_reverse=_flip(state.motors_reverse, function.motor))
    raise ValueError(f"unknown button action {function.action!r}")


def apply_edge(state: DiscreteState, function, pressed: bool, style: ButtonStyle = ONLY_PRESS) -> DiscreteState:
    """Return the state after one button edge; edges the style ignores change nothing."""
    if not style.fires_on(pressed):
        return state
    return apply_action(state, function)


class ButtonDispatcher:
    """Holds the discrete control state and interprets button edges.

    Repeated edges in the same direction (a press while already held) are
    ignored. Buttons with the Repeat style re-fire every `period` seconds
    while held; the owner drives that by calling `tick` no later than
    `next_deadline()`.
    """

    def __init__(self, motors: int, clock=time.monotonic):
        self.state = DiscreteState.initial(motors)
        self._clock = clock
        self._held: Dict[Tuple[int, int], bool] = {}
        self._repeats: Dict[Tuple[int, int], Tuple[float, ButtonMappingEntry]] = {}

    def handle(self, joystick: int, button: int, entry: ButtonMappingEntry, pressed: bool) -> DiscreteState:
        key = (joystick, button)
        if self._held.get(key, False) == pressed:
            LOG.debug("button %s repeated edge pressed=%s ignored", key, pressed)
            return self.state
        self._held[key] = pressed

        prev = self.state
        self.state = apply_edge(self.state, entry.function, pressed, entry.style)
        if self.state != prev:
            LOG.debug("button %s %s -> %s", key, entry.function, self.state)

        if entry.style.trigger == Trigger.REPEAT:
            if pressed:
                self._repeats[key] = (self._clock() + entry.style.period, entry)
            else:
                self._repeats.pop(key, None)
        return self.state

    def next_deadline(self) -> Optional[float]:
        if not self._repeats:
            return None
        return min(deadline for deadline, _ in self._repeats.values())

    def tick(self, now: Optional[float] = None) -> DiscreteState:
        """Re-fire every held repeat button whose deadline has passed."""
        if now is None:
            now = self._clock()
        for key, (deadline, entry) in list(self._repeats.items()):
            if deadline <= now:
                self.state = apply_action(self.state, entry.function)
                self._repeats[key] = (now + entry.style.period, entry)
                LOG.debug("button %s repeat -> %s", key, self.state)
        return self.state
