"""Error taxonomy shared by the capture thread and the network loops"""


class BridgeError(Exception):
    """Base class for fatal bridge errors."""


class ConfigurationError(BridgeError):
    """Malformed profile or a configured joystick with no matching device."""


class HardwareError(BridgeError):
    """Device subsystem could not be initialized or a device failed to open."""


class TransportError(BridgeError):
    """Sending to or receiving from the remote link failed."""
