"""Match enumerated physical devices to configured logical joysticks

Assignment is first-fit: logical joysticks are taken in declaration order and
each claims the first not-yet-claimed device whose name matches its regex.
When two patterns could match the same device, the one declared first wins.
"""
import logging
from typing import Dict, Iterable, Sequence, Tuple

from core.errors import ConfigurationError
from core.state import LogicalJoystick

LOG = logging.getLogger("yokebridge.resolver")


def resolve_devices(
    devices: Iterable[Tuple[int, str]], joysticks: Sequence[LogicalJoystick]
) -> Dict[int, int]:
    """Return {physical_id: logical_index} covering every configured joystick.

    `devices` is the (physical_id, name) list in enumeration order.
    """
    devices = list(devices)
    table: Dict[int, int] = {}
    for logical_idx, joy in enumerate(joysticks):
        for physical_id, name in devices:
            if physical_id in table or not joy.matches(name):
                continue
            table[physical_id] = logical_idx
            LOG.info("joystick %d (%r) -> device %d %r", logical_idx, joy.name_regex, physical_id, name)
            break
        else:
            names = [name for _, name in devices]
            raise ConfigurationError(
                f"no unclaimed device matches joystick {logical_idx} pattern {joy.name_regex!r} "
                f"(devices: {names})"
            )
    return table
