"""Joystick backend using SDL via pygame.joystick

Provides `PygameBackend`, the DeviceBackend used in production. Devices are
identified by their SDL instance id, which is also what joystick events carry.
"""
import logging

import pygame

from core.errors import HardwareError
from core.reader import DeviceBackend, RawAxisMotion, RawButtonDown, RawButtonUp, RawQuit

LOG = logging.getLogger("yokebridge.pygame")


def _to_i16(value: float) -> int:
    # pygame reports axes as -1.0..1.0; the mapping profile works in raw SDL units
    return max(-32768, min(32767, int(round(value * 32768))))


class PygameBackend(DeviceBackend):
    def __init__(self):
        self._joysticks = {}  # instance id -> pygame.joystick.Joystick
        self._opened = set()

    def init(self):
        try:
            pygame.init()
            pygame.joystick.init()
        except pygame.error as e:
            raise HardwareError(f"could not initialize joystick subsystem: {e}") from e

    def enumerate(self):
        devices = []
        for i in range(pygame.joystick.get_count()):
            js = pygame.joystick.Joystick(i)
            iid = js.get_instance_id()
            self._joysticks[iid] = js
            name = js.get_name() or ""
            LOG.info(
                "Found joystick: %s (index %d, id %d, axes=%d, buttons=%d)",
                name, i, iid, js.get_numaxes(), js.get_numbuttons(),
            )
            devices.append((iid, name))
        return devices

    def open(self, physical_id):
        js = self._joysticks.get(physical_id)
        if js is None:
            raise HardwareError(f"joystick {physical_id} is not attached")
        try:
            js.init()
        except pygame.error as e:
            raise HardwareError(f"could not open joystick {physical_id}: {e}") from e
        self._opened.add(physical_id)

    def poll(self):
        events = []
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT or (ev.type == pygame.KEYDOWN and ev.key == pygame.K_ESCAPE):
                events.append(RawQuit())
            elif ev.type == pygame.JOYAXISMOTION and ev.instance_id in self._opened:
                events.append(RawAxisMotion(ev.instance_id, ev.axis, _to_i16(ev.value)))
            elif ev.type == pygame.JOYBUTTONDOWN and ev.instance_id in self._opened:
                events.append(RawButtonDown(ev.instance_id, ev.button))
            elif ev.type == pygame.JOYBUTTONUP and ev.instance_id in self._opened:
                events.append(RawButtonUp(ev.instance_id, ev.button))
        return events

    def close(self):
        for iid in self._opened:
            try:
                self._joysticks[iid].quit()
            except pygame.error:
                LOG.exception("error closing joystick %d", iid)
        self._opened.clear()
        self._joysticks.clear()
        pygame.joystick.quit()
