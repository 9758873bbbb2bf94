"""
Device-facing wire protocol shared by the relay and connected devices: framing
helpers, message models and the error taxonomy.
"""

from .constants import DEFAULT_PORT, LENGTH_PREFIX_SIZE, UNSET_CHANNEL
from .errors import (
    ConfigError,
    ConnectionClosed,
    DecodeError,
    DeliveryError,
    ErrorKind,
    FrameTooLargeError,
    FramingError,
    RelayError,
    SessionClosedError,
    ShortReadError,
)
from .framing import decode_frame, encode_frame, read_frame, write_frame
from .messages import (
    CommandMessage,
    EmbedResponse,
    FileMessage,
    FileResponse,
    PresenceResponse,
    ProtoFile,
    Request,
    Response,
    SettingsResponse,
    TextField,
    command_request,
    decode_request,
    decode_response,
    encode_request,
    encode_response,
    file_request,
)

__all__ = [
    "DEFAULT_PORT",
    "LENGTH_PREFIX_SIZE",
    "UNSET_CHANNEL",
    "ConfigError",
    "ConnectionClosed",
    "DecodeError",
    "DeliveryError",
    "ErrorKind",
    "FrameTooLargeError",
    "FramingError",
    "RelayError",
    "SessionClosedError",
    "ShortReadError",
    "decode_frame",
    "encode_frame",
    "read_frame",
    "write_frame",
    "CommandMessage",
    "EmbedResponse",
    "FileMessage",
    "FileResponse",
    "PresenceResponse",
    "ProtoFile",
    "Request",
    "Response",
    "SettingsResponse",
    "TextField",
    "command_request",
    "decode_request",
    "decode_response",
    "encode_request",
    "encode_response",
    "file_request",
]
