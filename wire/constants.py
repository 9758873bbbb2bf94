"""Protocol-wide constants shared by the relay and devices."""

LENGTH_PREFIX_SIZE = 4
LENGTH_BYTEORDER = "little"
DEFAULT_PORT = 23416
UNSET_CHANNEL = 0  # sentinel, never routable

__all__ = [
    "LENGTH_PREFIX_SIZE",
    "LENGTH_BYTEORDER",
    "DEFAULT_PORT",
    "UNSET_CHANNEL",
]
