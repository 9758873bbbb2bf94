from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Categories of failure a relay connection can run into."""

    SHORT_READ = "short_read"
    CLOSED = "closed"
    FRAME_TOO_LARGE = "frame_too_large"
    IO = "io"
    DECODE = "decode"
    DELIVERY = "delivery"
    SESSION_CLOSED = "session_closed"
    CONFIG = "config"


class RelayError(Exception):
    """Structured relay exception carrying an error kind + message."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.kind.value}: {message}")


class FramingError(RelayError):
    """Byte stream failure. Always terminal for the connection."""

    kind = ErrorKind.IO


class ShortReadError(FramingError):
    kind = ErrorKind.SHORT_READ


class ConnectionClosed(FramingError):
    """Peer closed the stream on a frame boundary."""

    kind = ErrorKind.CLOSED


class FrameTooLargeError(FramingError):
    kind = ErrorKind.FRAME_TOO_LARGE


class DecodeError(RelayError):
    """Frame payload is not a valid message."""

    kind = ErrorKind.DECODE


class DeliveryError(RelayError):
    """Chat platform refused or failed a send."""

    kind = ErrorKind.DELIVERY


class SessionClosedError(RelayError):
    kind = ErrorKind.SESSION_CLOSED


class ConfigError(RelayError):
    kind = ErrorKind.CONFIG


__all__ = [
    "ErrorKind",
    "RelayError",
    "FramingError",
    "ShortReadError",
    "ConnectionClosed",
    "FrameTooLargeError",
    "DecodeError",
    "DeliveryError",
    "SessionClosedError",
    "ConfigError",
]
